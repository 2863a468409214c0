"""Prompt construction for the analysis and chat endpoints."""

import json
from enum import Enum
from typing import Any

_ANALYST_BASE = (
    "You are a cryptocurrency derivatives risk analyst specializing in "
    "funding rates and open interest analysis."
)


class DataType(str, Enum):
    """Kind of data attached to an analysis request."""

    CONCENTRATION = "concentration"
    FUNDING = "funding"
    LIQUIDATION = "liquidation"
    GENERAL = "general"


_FOCUS: dict[DataType, str] = {
    DataType.CONCENTRATION: (
        "Analyze OI concentration data and provide insights on market risks, "
        "position concentrations, and potential liquidation cascades. Focus on "
        "actionable insights for risk management."
    ),
    DataType.FUNDING: (
        "Analyze funding rate data and provide insights on market sentiment, "
        "arbitrage opportunities, and delta-neutral strategies."
    ),
    DataType.LIQUIDATION: (
        "Analyze liquidation data and provide insights on market stress, "
        "potential cascade events, and risk mitigation strategies."
    ),
    DataType.GENERAL: (
        "Analyze the provided financial data and answer questions about market "
        "conditions, risks, and trading opportunities."
    ),
}

_CHAT_SYSTEM = """You are an AI assistant for the perpetuals funding rate dashboard.
You specialize in:
- Funding rates analysis and interpretation
- Cryptocurrency derivatives trading insights
- Open interest and market concentration analysis
- Risk management in crypto trading
- Market sentiment analysis
- Trading strategies and opportunities

Provide helpful, accurate, and actionable insights. Keep responses concise but informative.
Current context: {context}"""

_CHAT_DATA = """

Current Market Data Available:
{data}

Use this data to provide specific, data-driven insights. Reference actual numbers and trends from the current market state."""


def dump_data(data: Any) -> str:
    """Pretty JSON for prompt embedding; Decimals and other objects via str()."""
    return json.dumps(data, indent=2, default=str)


def analysis_system_prompt(data_type: DataType) -> str:
    return f"{_ANALYST_BASE} {_FOCUS[data_type]}"


def build_analysis_messages(
    data: Any, question: str, data_type: DataType = DataType.GENERAL
) -> list[dict[str, str]]:
    """System + user messages for a one-shot data analysis question."""
    return [
        {"role": "system", "content": analysis_system_prompt(data_type)},
        {
            "role": "user",
            "content": f"Market Data: {dump_data(data)}\n\nUser Question: {question}",
        },
    ]


def build_chat_messages(
    message: str,
    history: list[dict[str, str]] | None = None,
    context: str = "Funding Rate Dashboard",
    data: Any = None,
) -> list[dict[str, str]]:
    """Conversation for the chat sidebar.

    The system prompt embeds ``data`` only when it is non-empty. Prior
    turns keep their order; anything other than user/assistant roles is
    dropped so callers cannot inject system messages.
    """
    system = _CHAT_SYSTEM.format(context=context)
    if data:
        system += _CHAT_DATA.format(data=dump_data(data))

    messages = [{"role": "system", "content": system}]
    for turn in history or []:
        if turn.get("role") in ("user", "assistant"):
            messages.append({"role": turn["role"], "content": str(turn.get("content", ""))})
    messages.append({"role": "user", "content": message})
    return messages
