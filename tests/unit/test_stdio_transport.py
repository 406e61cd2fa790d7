"""Tests for the stdio transport."""

import asyncio
import io
import json
import os

import pytest

from zapsign_mcp.core.processor import MCPProcessor
from zapsign_mcp.core.tool_registry import ToolRegistry
from zapsign_mcp.transports.stdio import StdioTransport


def lines(*messages):
    return io.StringIO("".join((m if isinstance(m, str) else json.dumps(m)) + "\n" for m in messages))


def responses(stdout):
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


class TestStdioTransport:
    """Test newline-delimited JSON-RPC over text streams."""

    @pytest.mark.asyncio
    async def test_serves_until_eof(self, processor):
        stdin = lines(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2024-11-05"}},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "echo", "arguments": {"msg": "hi"}}},
        )
        stdout = io.StringIO()

        exit_code = await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        assert exit_code == 0
        out = responses(stdout)
        assert [r["id"] for r in out] == [1, 2]
        assert out[0]["result"]["serverInfo"]["name"] == "test-server"
        assert json.loads(out[1]["result"]["content"][0]["text"]) == {"msg": "hi"}
        assert processor.closed

    @pytest.mark.asyncio
    async def test_blank_lines_are_ignored(self, processor):
        stdin = io.StringIO('\n   \n{"jsonrpc": "2.0", "id": 1, "method": "ping"}\n')
        stdout = io.StringIO()

        await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        assert responses(stdout) == [{"jsonrpc": "2.0", "id": 1, "result": {}}]

    @pytest.mark.asyncio
    async def test_bad_json_gets_parse_error_and_serving_continues(self, processor):
        stdin = lines("{broken", {"jsonrpc": "2.0", "id": 2, "method": "ping"})
        stdout = io.StringIO()

        await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        out = responses(stdout)
        assert out[0]["error"]["data"]["kind"] == "ParseError"
        assert out[1]["id"] == 2

    @pytest.mark.asyncio
    async def test_handler_error_is_reported_on_stdout(self, processor):
        stdin = lines({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "boom"}})
        stdout = io.StringIO()

        await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        assert responses(stdout)[0]["error"]["data"]["kind"] == "ExecutionError"

    @pytest.mark.asyncio
    async def test_stop_finishes_in_flight_message(self, make_envelope):
        """Test a stop request lets the current call finish, then exits cleanly."""
        gate = asyncio.Event()
        started = asyncio.Event()

        async def slow(arguments):
            started.set()
            await gate.wait()
            return {"finished": True}

        registry = ToolRegistry()
        registry.register(make_envelope("slow", slow))
        processor = MCPProcessor(registry)

        read_fd, write_fd = os.pipe()
        stdin = os.fdopen(read_fd, "r")
        writer = os.fdopen(write_fd, "w")
        stdout = io.StringIO()
        transport = StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False)

        try:
            serving = asyncio.create_task(transport.serve())
            writer.write(json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "slow"}}) + "\n")
            writer.flush()

            await asyncio.wait_for(started.wait(), timeout=2)
            transport.request_stop()
            gate.set()
            exit_code = await asyncio.wait_for(serving, timeout=2)
        finally:
            writer.close()
            stdin.close()

        assert exit_code == 0
        out = responses(stdout)
        assert len(out) == 1
        assert json.loads(out[0]["result"]["content"][0]["text"]) == {"finished": True}
        assert processor.closed

    @pytest.mark.asyncio
    async def test_message_with_wrong_shape_is_invalid_request(self, processor):
        stdin = lines({"id": 1, "foo": "bar"}, {"jsonrpc": "2.0", "id": 2, "method": "ping"})
        stdout = io.StringIO()

        await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        out = responses(stdout)
        assert out[0]["error"]["data"]["kind"] == "InvalidRequest"
        assert "id" not in out[0]
        assert out[1] == {"jsonrpc": "2.0", "id": 2, "result": {}}

    @pytest.mark.asyncio
    async def test_batch_is_invalid_request(self, processor):
        stdin = lines([{"jsonrpc": "2.0", "id": 1, "method": "ping"}])
        stdout = io.StringIO()

        await StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False).serve()

        out = responses(stdout)
        assert len(out) == 1
        assert out[0]["error"]["data"]["kind"] == "InvalidRequest"

    @pytest.mark.asyncio
    async def test_stop_before_serving_reads_nothing(self, processor):
        stdin = lines({"jsonrpc": "2.0", "id": 1, "method": "ping"})
        stdout = io.StringIO()
        transport = StdioTransport(processor, stdin=stdin, stdout=stdout, handle_signals=False)

        transport.request_stop()
        exit_code = await transport.serve()

        assert exit_code == 0
        assert stdout.getvalue() == ""
        assert processor.closed

    @pytest.mark.asyncio
    async def test_closed_stdout_exits_cleanly(self, processor):
        class ClosedStdout(io.StringIO):
            def write(self, text):
                raise BrokenPipeError(32, "Broken pipe")

        stdin = lines({"jsonrpc": "2.0", "id": 1, "method": "ping"})

        exit_code = await StdioTransport(processor, stdin=stdin, stdout=ClosedStdout(), handle_signals=False).serve()

        assert exit_code == 0
        assert processor.closed
