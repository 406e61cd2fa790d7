"""Tests for the SDK stream bridge."""

import json
from unittest.mock import AsyncMock, patch

import anyio
import pytest
from mcp import types
from mcp.shared.message import SessionMessage
from mcp.types import INVALID_REQUEST, PARSE_ERROR
from pydantic import ValidationError

from zapsign_mcp.core.exceptions import ParseError
from zapsign_mcp.transports.bridge import (
    dispatch,
    invalid_message_response,
    run_message_loop,
    to_request,
    to_session_message,
)


def inbound(payload):
    return SessionMessage(types.JSONRPCMessage.model_validate(payload))


def validation_error(text):
    with pytest.raises(ValidationError) as exc_info:
        types.JSONRPCMessage.model_validate_json(text)
    return exc_info.value


class TestConversion:
    def test_request_keeps_null_arguments(self):
        message = inbound(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "echo", "arguments": {"msg": None}},
            }
        )

        assert to_request(message) == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": "echo", "arguments": {"msg": None}},
        }

    def test_notification_has_no_id(self):
        request = to_request(inbound({"jsonrpc": "2.0", "method": "notifications/initialized"}))

        assert request == {"jsonrpc": "2.0", "method": "notifications/initialized"}

    def test_response_round_trips(self):
        message = to_session_message({"jsonrpc": "2.0", "id": "r1", "result": {"tools": []}})

        assert json.loads(message.message.model_dump_json(by_alias=True, exclude_none=True)) == {
            "jsonrpc": "2.0",
            "id": "r1",
            "result": {"tools": []},
        }

    def test_error_without_id_is_sent_without_id(self):
        response = {"jsonrpc": "2.0", "id": None, "error": ParseError().to_dict()}

        message = to_session_message(response)

        sent = json.loads(message.message.model_dump_json(by_alias=True, exclude_none=True))
        assert "id" not in sent
        assert sent["error"]["code"] == PARSE_ERROR
        assert sent["error"]["data"]["kind"] == "ParseError"


class TestInvalidMessageResponse:
    def test_unreadable_json_is_parse_error(self):
        response = invalid_message_response(validation_error("{broken"))

        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    @pytest.mark.parametrize("text", ['{"id": 1}', '[{"jsonrpc": "2.0", "id": 1, "method": "ping"}]', "42"])
    def test_wrong_shape_is_invalid_request(self, text):
        response = invalid_message_response(validation_error(text))

        assert response["error"]["code"] == INVALID_REQUEST
        assert response["error"]["message"] == "Invalid JSON-RPC message"

    def test_other_failures_are_invalid_request(self):
        assert invalid_message_response(UnicodeDecodeError("utf-8", b"\xff", 0, 1, "bad"))["error"]["code"] == INVALID_REQUEST


class TestDispatch:
    @pytest.mark.asyncio
    async def test_invalid_item_is_answered_only_when_asked(self, processor):
        error = validation_error("{broken")

        assert await dispatch(processor, error, reply_to_invalid=False) is None
        assert (await dispatch(processor, error, reply_to_invalid=True))["error"]["code"] == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_request_reaches_processor(self, processor):
        response = await dispatch(processor, inbound({"jsonrpc": "2.0", "id": 3, "method": "ping"}), reply_to_invalid=False)

        assert response == {"jsonrpc": "2.0", "id": 3, "result": {}}


class TestRunMessageLoop:
    @pytest.mark.asyncio
    async def test_stopping_drains_without_processing(self, processor):
        client_send, read_stream = anyio.create_memory_object_stream(10)
        write_stream, client_receive = anyio.create_memory_object_stream(10)
        await client_send.send(inbound({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        await client_send.send(inbound({"jsonrpc": "2.0", "id": 2, "method": "ping"}))
        client_send.close()

        with patch.object(processor, "process_request", new=AsyncMock()) as mock_process:
            await run_message_loop(processor, read_stream, write_stream, stopping=lambda: True)

        mock_process.assert_not_called()
        with pytest.raises(anyio.EndOfStream):
            client_receive.receive_nowait()

    @pytest.mark.asyncio
    async def test_responses_are_written_then_stream_closed(self, processor):
        client_send, read_stream = anyio.create_memory_object_stream(10)
        write_stream, client_receive = anyio.create_memory_object_stream(10)
        await client_send.send(inbound({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        await client_send.send(ValueError("not json"))
        client_send.close()

        await run_message_loop(processor, read_stream, write_stream, reply_to_invalid=True)

        first = client_receive.receive_nowait().message.model_dump(by_alias=True, exclude_none=True)
        second = client_receive.receive_nowait().message.model_dump(by_alias=True, exclude_none=True)
        assert first == {"jsonrpc": "2.0", "id": 1, "result": {}}
        assert second["error"]["code"] == INVALID_REQUEST
        with pytest.raises(anyio.EndOfStream):
            client_receive.receive_nowait()

    @pytest.mark.asyncio
    async def test_vanished_client_does_not_end_loop(self, processor):
        client_send, read_stream = anyio.create_memory_object_stream(10)
        write_stream, client_receive = anyio.create_memory_object_stream(10)
        client_receive.close()
        await client_send.send(inbound({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        await client_send.send(inbound({"jsonrpc": "2.0", "id": 2, "method": "ping"}))
        client_send.close()

        with patch.object(processor, "process_request", wraps=processor.process_request) as mock_process:
            await run_message_loop(processor, read_stream, write_stream)

        assert mock_process.call_count == 2
