"""Newline-delimited JSON-RPC over stdin/stdout.

Framing and serialization come from the MCP SDK's ``stdio_server``; this
module supplies the line source, stop-signal handling and the processor loop.
stdout carries protocol messages only; everything else is logged to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import stat
import sys
from typing import List, Optional, TextIO

import anyio
from mcp.server.stdio import stdio_server

from ..core.processor import MCPProcessor
from .bridge import run_message_loop

logger = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Longest accepted stdin line
MAX_LINE_BYTES = 32 * 1024 * 1024


class _LineSource:
    """Async iterator over non-blank input lines that can be told to stop early."""

    def __init__(self) -> None:
        self._stopped = False

    def __aiter__(self) -> _LineSource:
        return self

    async def __anext__(self) -> str:
        while not self._stopped:
            line = await self._readline()
            if not line:
                break
            if line.strip():
                return line
        self.close()
        raise StopAsyncIteration

    def stop(self) -> None:
        self._stopped = True

    def close(self) -> None:
        pass

    async def _readline(self) -> str:
        raise NotImplementedError


class _FileLines(_LineSource):
    """Lines from a regular file or an in-memory stream, read in a worker thread."""

    def __init__(self, stream: TextIO) -> None:
        super().__init__()
        self._file = anyio.wrap_file(stream)

    async def _readline(self) -> str:
        return await self._file.readline()


class _PipeLines(_LineSource):
    """Lines from a pipe, socket or terminal.

    Read on the event loop through a duplicate of the descriptor, so ``stop``
    can end a read that is waiting for input.
    """

    def __init__(self, stream: TextIO) -> None:
        super().__init__()
        self._fd = stream.fileno()
        self._reader: Optional[asyncio.StreamReader] = None
        self._transport: Optional[asyncio.ReadTransport] = None

    async def _open(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        pipe = os.fdopen(os.dup(self._fd), "rb", buffering=0)
        self._transport, _ = await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), pipe)
        self._reader = reader
        return reader

    async def _readline(self) -> str:
        reader = self._reader or await self._open()
        while True:
            try:
                raw = await reader.readline()
            except ValueError as exc:
                logger.warning(f"Dropping oversized stdin line: {exc}")
                continue
            return raw.decode("utf-8", errors="replace")

    def stop(self) -> None:
        super().stop()
        if self._transport is not None:
            # connection_lost feeds EOF to the reader
            self._transport.close()

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None
            # O_NONBLOCK is shared with the original descriptor
            os.set_blocking(self._fd, True)


def _line_source(stream: TextIO) -> _LineSource:
    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (AttributeError, OSError, ValueError):
        return _FileLines(stream)
    if stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or stat.S_ISCHR(mode):
        return _PipeLines(stream)
    return _FileLines(stream)


def _is_broken_pipe(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError)):
        return True
    nested = getattr(exc, "exceptions", None)
    return bool(nested) and all(_is_broken_pipe(inner) for inner in nested)


class StdioTransport:
    """Serve one processor over a pair of text streams until EOF or a stop signal."""

    def __init__(
        self,
        processor: MCPProcessor,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        handle_signals: bool = True,
    ) -> None:
        self.processor = processor
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout
        self._handle_signals = handle_signals
        self._lines: Optional[_LineSource] = None
        self._stopping = False
        self._installed_signals: List[int] = []

    def request_stop(self) -> None:
        """Stop after the message being handled, if any."""
        if self._stopping:
            return
        logger.info("Shutdown requested; finishing in-flight message")
        self._stopping = True
        if self._lines is not None:
            self._lines.stop()

    async def serve(self) -> int:
        """Run until stdin closes or shutdown is requested. Returns the exit code."""
        loop = asyncio.get_running_loop()
        lines = self._lines = _line_source(self._stdin)
        if self._stopping:
            lines.stop()
        # None lets the SDK wrap the process stdout as UTF-8
        stdout = anyio.wrap_file(self._stdout) if self._stdout is not None else None
        if self._handle_signals:
            self._install_signal_handlers(loop)

        logger.info("MCP server listening on stdio")
        try:
            async with stdio_server(stdin=lines, stdout=stdout) as (read_stream, write_stream):  # type: ignore[arg-type]
                await run_message_loop(
                    self.processor,
                    read_stream,
                    write_stream,
                    reply_to_invalid=True,
                    stopping=lambda: self._stopping,
                )
            if not self._stopping:
                logger.info("stdin closed")
        except Exception as exc:
            if not _is_broken_pipe(exc):
                raise
            logger.error(f"stdout closed, stopping: {exc}")
        finally:
            lines.close()
            self._remove_signal_handlers(loop)
            self.processor.close()
            logger.info("stdio transport stopped")
        return 0

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in _SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug(f"Signal handler for {sig} not supported here")
                continue
            self._installed_signals.append(sig)

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()
