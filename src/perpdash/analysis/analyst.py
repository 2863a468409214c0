"""Natural-language analysis of dashboard data.

Thin coordinator between prompt construction and the Mistral client.
The analytics layer only supplies JSON-serializable data and a question.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from perpdash.analysis.mistral_client import MistralClient
from perpdash.analysis.prompts import DataType, build_analysis_messages, build_chat_messages
from perpdash.config import AnalysisSettings
from perpdash.logging import get_logger

logger = get_logger(__name__)


class DataAnalyst:
    """Answers questions about market data by streaming LLM output."""

    def __init__(self, client: MistralClient, settings: AnalysisSettings) -> None:
        self._client = client
        self._settings = settings

    async def ask(
        self,
        data: Any,
        question: str,
        data_type: DataType = DataType.GENERAL,
    ) -> AsyncIterator[str]:
        """Stream an answer to ``question`` about ``data``."""
        messages = build_analysis_messages(data, question, data_type)
        logger.info(
            "analysis_requested",
            data_type=data_type.value,
            question_chars=len(question),
        )
        async for chunk in self._client.stream_chat(
            messages, model=self._settings.analysis_model
        ):
            yield chunk

    async def chat(
        self,
        message: str,
        history: list[dict[str, str]] | None = None,
        context: str = "Funding Rate Dashboard",
        data: Any = None,
    ) -> AsyncIterator[str]:
        """Stream the assistant's reply to a chat turn."""
        messages = build_chat_messages(message, history, context, data)
        logger.info("chat_requested", turns=len(messages) - 1, has_data=bool(data))
        async for chunk in self._client.stream_chat(
            messages, model=self._settings.chat_model
        ):
            yield chunk
