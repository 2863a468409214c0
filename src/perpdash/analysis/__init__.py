"""LLM-backed analysis and chat for the dashboard sidebar."""

from perpdash.analysis.analyst import DataAnalyst
from perpdash.analysis.mistral_client import MistralClient, parse_sse_line
from perpdash.analysis.prompts import DataType, build_analysis_messages, build_chat_messages

__all__ = [
    "DataAnalyst",
    "DataType",
    "MistralClient",
    "build_analysis_messages",
    "build_chat_messages",
    "parse_sse_line",
]
