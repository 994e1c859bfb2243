"""Progress streaming while a round is in flight.

The orchestrating task writes ProgressEvents into a ProgressChannel; the
caller iterates the channel concurrently. RoundRun ties a running round to
its channel so callers get events, the final result, and cancellation from
one handle.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from scout.discovery.errors import StructuredOutputError
from scout.discovery.models import EventLevel, EventType, ProgressEvent
from scout.discovery.parsing import coerce_output
from scout.providers.base import CallGate, CallOptions, FinalOutput, PartialText
from scout.types import TokenUsage

logger = logging.getLogger(__name__)

Emit = Callable[[ProgressEvent], None]

_CLOSED = object()


def log_only(event: ProgressEvent) -> None:
    """Emitter used when the caller does not listen for progress."""
    logger.debug("%s: %s", event.type, event.message)


class ProgressChannel:
    """Single-producer, single-consumer event queue for one round."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: ProgressEvent) -> None:
        """Queue an event. Events emitted after close are dropped."""
        if self._closed:
            return
        logger.debug("%s: %s", event.type, event.message)
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def events(self) -> AsyncIterator[ProgressEvent]:
        """Yield events until the channel is closed."""
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class RoundRun[ResultT]:
    """Handle for a round running in its own task.

    Example:
        run = orchestrator.stream_round(session, answers)
        async for event in run:
            print(event.message)
        result = await run.result()
    """

    def __init__(self, work: Callable[[ProgressChannel], Awaitable[ResultT]]) -> None:
        self.channel = ProgressChannel()
        self._task: asyncio.Task[ResultT] = asyncio.create_task(self._drive(work))

    async def _drive(self, work: Callable[[ProgressChannel], Awaitable[ResultT]]) -> ResultT:
        try:
            return await work(self.channel)
        finally:
            self.channel.close()

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self.channel.events()

    async def result(self) -> ResultT:
        """Wait for the round and return its result (or raise its error)."""
        return await self._task

    def cancel(self) -> None:
        """Abort the round; cancellation reaches every outstanding call."""
        self._task.cancel()

    def done(self) -> bool:
        return self._task.done()


class LineChunker:
    """Split streamed text into log-sized lines.

    Breaks at newlines, or at `limit` characters when a line runs long.
    """

    def __init__(self, limit: int = 220) -> None:
        self.limit = limit
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        parts: list[str] = []
        while True:
            newline = self._buffer.find("\n")
            if newline == -1 and len(self._buffer) < self.limit:
                break
            if newline != -1 and newline < self.limit:
                part, self._buffer = self._buffer[:newline], self._buffer[newline + 1 :]
            else:
                part, self._buffer = self._buffer[: self.limit], self._buffer[self.limit :]
            part = part.strip()
            if part:
                parts.append(part)
        return parts

    def flush(self) -> str:
        rest = self._buffer.strip()
        self._buffer = ""
        return rest


async def run_call[ModelT: BaseModel](
    gate: CallGate,
    prompt: str,
    model_cls: type[ModelT],
    options: CallOptions,
    emit: Emit,
    *,
    prefix: str,
    agent: str | None = None,
    chunk_chars: int = 220,
) -> tuple[ModelT, TokenUsage]:
    """Submit one call, relay its streamed text, and validate its output.

    Args:
        gate: Analysis call gate
        prompt: Prompt text
        model_cls: Expected output model
        options: Per-call options
        emit: Progress emitter
        prefix: Log prefix, e.g. the job id or "synth"
        agent: Job id attached to log events
        chunk_chars: Max characters per log event

    Returns:
        Tuple of (validated output, usage)

    Raises:
        StructuredOutputError: If the call ends without valid output
    """
    chunker = LineChunker(chunk_chars)
    streamed: list[str] = []
    final: FinalOutput | None = None

    async for event in gate.submit(prompt, model_cls, options):
        if isinstance(event, PartialText):
            streamed.append(event.text)
            for part in chunker.feed(event.text):
                emit(ProgressEvent(type=EventType.LOG, message=f"[{prefix}] {part}", agent=agent))
        else:
            final = event

    rest = chunker.flush()
    if rest:
        emit(ProgressEvent(type=EventType.LOG, message=f"[{prefix}] {rest}", agent=agent))

    if final is None:
        raise StructuredOutputError(f"{prefix} call ended without a final result.")

    output = coerce_output(final.output, model_cls, "".join(streamed))
    logger.debug(
        "%s call finished in %dms (%d tokens, model=%s)",
        prefix,
        final.duration_ms,
        final.usage.total_tokens,
        final.model,
    )
    return output, final.usage


def error_event(
    message: str, *, details: str | None = None, agent: str | None = None
) -> ProgressEvent:
    etype = EventType.AGENT if agent else EventType.STATUS
    return ProgressEvent(
        type=etype, level=EventLevel.ERROR, message=message, details=details, agent=agent
    )


def status_event(message: str) -> ProgressEvent:
    return ProgressEvent(type=EventType.STATUS, message=message)
