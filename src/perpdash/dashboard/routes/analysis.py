"""Streaming LLM endpoints: data analysis and sidebar chat.

Both respond with text/plain chunks as the model produces them. The first
chunk is awaited before the response starts, so configuration and upstream
failures still surface as a plain 500 instead of a truncated 200.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from perpdash.analysis.analyst import DataAnalyst
from perpdash.analysis.prompts import DataType
from perpdash.exceptions import AnalysisUnavailableError
from perpdash.logging import get_logger

log = get_logger(__name__)

router = APIRouter()

_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def _start_stream(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """Pull the first chunk eagerly, then replay it followed by the rest."""
    try:
        first: str | None = await chunks.__anext__()
    except StopAsyncIteration:
        first = None

    async def _replay() -> AsyncIterator[str]:
        if first is None:
            return
        yield first
        async for chunk in chunks:
            yield chunk

    return _replay()


def _stream_response(chunks: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(
        chunks,
        media_type="text/plain; charset=utf-8",
        headers=_STREAM_HEADERS,
    )


def _analyst(request: Request) -> DataAnalyst | None:
    return getattr(request.app.state, "analyst", None)


@router.post("/analyze-data")
async def analyze_data(request: Request) -> Response:
    """Answer a question about posted data.

    Body: {"data": any, "question": str, "dataType"?: concentration|funding|
    liquidation|general, "context"?: str}
    """
    analyst = _analyst(request)
    if analyst is None:
        return PlainTextResponse("Analysis not available", status_code=503)

    try:
        body = await request.json()
        question = str(body["question"])
        data_type = DataType(body.get("dataType", DataType.GENERAL.value))
    except (ValueError, KeyError, TypeError, AttributeError):
        return PlainTextResponse("Invalid analysis request", status_code=400)

    try:
        chunks = await _start_stream(analyst.ask(body.get("data"), question, data_type))
    except AnalysisUnavailableError as e:
        log.error("analysis_api_error", error=str(e))
        return PlainTextResponse("Error analyzing data", status_code=500)

    return _stream_response(chunks)


@router.post("/chat")
async def chat(request: Request) -> Response:
    """Sidebar chat turn.

    Body: {"message": str, "messages"?: [{role, content}], "context"?: str,
    "data"?: any}
    """
    analyst = _analyst(request)
    if analyst is None:
        return PlainTextResponse("Chat not available", status_code=503)

    try:
        body = await request.json()
        message = str(body["message"])
        history = body.get("messages") or []
        context = str(body.get("context") or "Funding Rate Dashboard")
        if not isinstance(history, list):
            raise TypeError("messages must be a list")
    except (ValueError, KeyError, TypeError, AttributeError):
        return PlainTextResponse("Invalid chat request", status_code=400)

    history = [turn for turn in history if isinstance(turn, dict)]
    try:
        chunks = await _start_stream(
            analyst.chat(message, history, context, body.get("data"))
        )
    except AnalysisUnavailableError as e:
        log.error("chat_api_error", error=str(e))
        return PlainTextResponse("Error processing chat message", status_code=500)

    return _stream_response(chunks)
