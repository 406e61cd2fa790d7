"""Tests for the tool executor."""

from unittest.mock import MagicMock

import pytest

from zapsign_mcp.core.exceptions import InvalidParamsError, ToolExecutionError
from zapsign_mcp.core.executor import ExecutionResult, ToolExecutor, is_soft_error
from zapsign_mcp.core.tool_registry import ToolDescriptor
from zapsign_mcp.exceptions import ZapSignAPIError
from zapsign_mcp.tools.base import ZapSignTool


def descriptor_for(handler, make_envelope):
    return ToolDescriptor.from_envelope(make_envelope("tool", handler))


class TestToolExecutor:
    """Test single-attempt execution and error translation."""

    @pytest.mark.asyncio
    async def test_returns_value_and_duration(self, make_envelope):
        """Test the handler value is returned with elapsed milliseconds."""

        async def handler(arguments):
            return {"ok": True}

        clock = MagicMock(side_effect=[10.0, 10.25])
        result = await ToolExecutor(clock=clock).execute(descriptor_for(handler, make_envelope), {})

        assert result.value == {"ok": True}
        assert result.duration_ms == 250.0
        assert not result.is_soft_error

    @pytest.mark.asyncio
    async def test_sync_handlers_are_supported(self, make_envelope):
        result = await ToolExecutor().execute(descriptor_for(lambda arguments: 7, make_envelope), {})

        assert result.value == 7

    @pytest.mark.asyncio
    async def test_handler_receives_a_copy(self, make_envelope):
        """Test mutations inside the handler do not leak to the caller."""

        async def handler(arguments):
            arguments["injected"] = True
            return arguments

        original = {"a": 1}
        await ToolExecutor().execute(descriptor_for(handler, make_envelope), original)

        assert original == {"a": 1}

    @pytest.mark.asyncio
    async def test_exception_becomes_execution_error(self, make_envelope):
        """Test handler exceptions keep their message and the duration."""

        async def handler(arguments):
            raise ValueError("bad input")

        clock = MagicMock(side_effect=[1.0, 1.5])
        with pytest.raises(ToolExecutionError) as exc_info:
            await ToolExecutor(clock=clock).execute(descriptor_for(handler, make_envelope), {})

        error = exc_info.value
        assert error.message == "Tool execution error: bad input"
        assert error.original_message == "bad input"
        assert error.duration_ms == 500.0
        assert isinstance(error.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_empty_message_uses_exception_type(self, make_envelope):
        async def handler(arguments):
            raise KeyError()

        with pytest.raises(ToolExecutionError) as exc_info:
            await ToolExecutor().execute(descriptor_for(handler, make_envelope), {})

        assert exc_info.value.original_message == "KeyError"

    @pytest.mark.asyncio
    async def test_upstream_errors_are_labelled(self, make_envelope):
        """Test failures from the ZapSign client get the API prefix."""

        async def handler(arguments):
            raise ZapSignAPIError("Forbidden: Insufficient permissions for this operation", status_code=403)

        with pytest.raises(ToolExecutionError) as exc_info:
            await ToolExecutor().execute(descriptor_for(handler, make_envelope), {})

        assert exc_info.value.message == "ZapSign API error: Forbidden: Insufficient permissions for this operation"

    @pytest.mark.asyncio
    async def test_protocol_errors_pass_through(self, make_envelope):
        """Test MCP errors raised by a handler are not wrapped."""

        async def handler(arguments):
            raise InvalidParamsError("nope")

        with pytest.raises(InvalidParamsError):
            await ToolExecutor().execute(descriptor_for(handler, make_envelope), {})


class TestExecutionResult:
    def test_soft_error_detection(self):
        assert ExecutionResult({"error": "x"}, 1.0).is_soft_error
        assert ExecutionResult({"error": "x", "details": {"detail": "bad"}, "status_code": 400}, 1.0).is_soft_error
        assert not ExecutionResult({"data": "x"}, 1.0).is_soft_error
        assert not ExecutionResult(["error"], 1.0).is_soft_error

    def test_upstream_payload_with_error_field_is_a_result(self):
        """Test an API body that happens to carry an error field is not a failure."""
        document = {"token": "doc-1", "status": "pending", "error": "signer bounced"}

        assert not ExecutionResult(document, 1.0).is_soft_error
        assert not is_soft_error({"error": {"code": 7}})
        assert not is_soft_error({"error": None})

    def test_error_result_shape_is_a_soft_error(self):
        """Test every shape the tool base class reports as failure is recognised."""
        tool = ZapSignTool(name="t", description="d", method="GET", path="/x/", action="doing it")

        assert is_soft_error(tool.error_result())
        assert is_soft_error(tool.error_result({"detail": "nope"}, 404))
