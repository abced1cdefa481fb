"""Tests for tool dispatch, reply formatting and the FastMCP tool wrapper."""

from unittest.mock import AsyncMock

import httpx
import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.models import ApiError, Message
from tools.mcp_server import (
    TOOL_CATALOG,
    FastalertTool,
    ToolReply,
    create_server,
    handle_call,
    respond,
    respond_error,
)

VALID_MESSAGE = {"channel-uuid": ["abc-cl1-xyz-123"], "title": "Deploy", "content": "v2 is live"}


@pytest.fixture
def client():
    fake = AsyncMock()
    fake.search_channels.return_value = []
    fake.send_message.return_value = []
    return fake


class TestRespond:
    def test_list_is_bulleted_json(self, sample_channels):
        reply = respond(sample_channels)
        assert reply.is_error is False
        assert reply.text == (
            '• {"uuid":"abc-cl1-xyz-123","name":"Ops","subscriber":"12"}\n'
            '• {"uuid":"def-cl2-uvw-456","name":"Ops Night","subscriber":"3"}'
        )

    def test_empty_list_is_empty_text(self):
        assert respond([]).text == ""

    def test_string_passes_through(self):
        assert respond("queued").text == "queued"

    def test_other_values_are_pretty_json(self):
        assert respond({"ok": True}).text == '{\n  "ok": true\n}'

    def test_same_input_same_output(self, sample_channels):
        assert respond(sample_channels) == respond(sample_channels)

    def test_error_prefix_and_flag(self):
        reply = respond_error(ApiError("boom", "X1", 500))
        assert reply == ToolReply(text="❌ Error: boom", is_error=True)

    def test_error_from_exception(self):
        assert respond_error(ValueError("nope")).text == "❌ Error: nope"


class TestHandleCall:
    @pytest.mark.asyncio
    async def test_list_channels(self, client, sample_channels):
        client.search_channels.return_value = sample_channels

        reply = await handle_call(client, "list_channels", {"name": "Ops"})

        client.search_channels.assert_awaited_once_with(name="Ops")
        assert reply == respond(sample_channels)

    @pytest.mark.asyncio
    async def test_list_channels_without_arguments(self, client):
        await handle_call(client, "list_channels", None)
        client.search_channels.assert_awaited_once_with(name=None)

    @pytest.mark.asyncio
    async def test_send_message(self, client):
        client.send_message.return_value = [{"id": "m-1"}]

        reply = await handle_call(client, "send_message", VALID_MESSAGE)

        client.send_message.assert_awaited_once()
        (message,), _ = client.send_message.await_args
        assert isinstance(message, Message)
        assert message.channel_uuid == ["abc-cl1-xyz-123"]
        assert reply.text == '• {"id":"m-1"}'
        assert reply.is_error is False

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client):
        reply = await handle_call(client, "unknown_tool", {})

        assert reply.is_error is True
        assert "unknown_tool" in reply.text
        assert reply.text.startswith("❌ Error: ")
        client.search_channels.assert_not_awaited()
        client.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_channel_list_never_reaches_client(self, client):
        reply = await handle_call(client, "send_message", {**VALID_MESSAGE, "channel-uuid": []})

        assert reply.is_error is True
        assert "channel-uuid" in reply.text
        client.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_value_becomes_error_reply(self, client):
        client.search_channels.return_value = ApiError("boom", "X1", 500)

        reply = await handle_call(client, "list_channels", {})

        assert reply == ToolReply(text="❌ Error: boom", is_error=True)

    @pytest.mark.asyncio
    async def test_transport_failure_is_caught(self, client):
        client.search_channels.side_effect = httpx.ConnectError("connection refused")

        reply = await handle_call(client, "list_channels", {})

        assert reply == ToolReply(text="❌ Error: connection refused", is_error=True)


class TestCatalog:
    def test_tool_names(self):
        assert [tool["name"] for tool in TOOL_CATALOG] == ["list_channels", "send_message"]

    def test_send_message_schema(self):
        schema = TOOL_CATALOG[1]["inputSchema"]
        assert schema["required"] == ["channel-uuid", "title", "content"]
        assert schema["properties"]["channel-uuid"]["minItems"] == 1
        assert schema["properties"]["action"]["enum"] == ["call", "email", "website", "image"]

    def test_list_channels_has_no_required_inputs(self):
        assert "required" not in TOOL_CATALOG[0]["inputSchema"]


class TestFastalertTool:
    def _tool(self, reply):
        handler = AsyncMock(return_value=reply)
        entry = TOOL_CATALOG[0]
        tool = FastalertTool(
            name=entry["name"],
            description=entry["description"],
            parameters=entry["inputSchema"],
            handler=handler,
        )
        return tool, handler

    @pytest.mark.asyncio
    async def test_success_is_single_text_block(self):
        tool, handler = self._tool(ToolReply(text="• {}"))

        result = await tool.run({"name": "Ops"})

        handler.assert_awaited_once_with("list_channels", {"name": "Ops"})
        assert len(result.content) == 1
        assert result.content[0].type == "text"
        assert result.content[0].text == "• {}"

    @pytest.mark.asyncio
    async def test_error_reply_raises_tool_error(self):
        tool, _ = self._tool(ToolReply(text="❌ Error: boom", is_error=True))

        with pytest.raises(ToolError, match="boom"):
            await tool.run({})


class TestServerOverProtocol:
    """Drive create_server() through an in-memory FastMCP client session."""

    @pytest.mark.asyncio
    async def test_lists_catalog(self, make_client):
        server = create_server(make_client(lambda request: httpx.Response(200, json={})))

        async with Client(server) as session:
            tools = {tool.name: tool for tool in await session.list_tools()}

        assert set(tools) == {"list_channels", "send_message"}
        schema = tools["send_message"].inputSchema
        assert schema["required"] == ["channel-uuid", "title", "content"]
        assert schema["properties"]["channel-uuid"]["minItems"] == 1

    @pytest.mark.asyncio
    async def test_list_channels(self, make_client, sample_channels):
        handler = lambda request: httpx.Response(200, json={"data": {"data": sample_channels}})
        server = create_server(make_client(handler))

        async with Client(server) as session:
            result = await session.call_tool_mcp("list_channels", {"name": "Ops"})

        assert result.isError is False
        assert result.content[0].text == respond(sample_channels).text

    @pytest.mark.asyncio
    async def test_upstream_fault_sets_error_flag(self, make_client):
        body = {"fault": {"faultstring": "boom", "detail": {"errorcode": "X1"}}}
        server = create_server(make_client(lambda request: httpx.Response(500, json=body)))

        async with Client(server) as session:
            result = await session.call_tool_mcp("list_channels", {})

        assert result.isError is True
        assert result.content[0].text == "❌ Error: boom"

    @pytest.mark.asyncio
    async def test_empty_channel_list_rejected_without_http(self, make_client, sent_requests):
        server = create_server(make_client(lambda request: httpx.Response(200, json={})))

        async with Client(server) as session:
            result = await session.call_tool_mcp(
                "send_message", {**VALID_MESSAGE, "channel-uuid": []}
            )

        assert result.isError is True
        assert result.content[0].text.startswith("❌ Error: ")
        assert "channel-uuid" in result.content[0].text
        assert sent_requests == []

    @pytest.mark.asyncio
    async def test_unknown_tool_gets_error_prefix(self, make_client, sent_requests):
        server = create_server(make_client(lambda request: httpx.Response(200, json={})))

        async with Client(server) as session:
            result = await session.call_tool_mcp("unknown_tool", {})

        assert result.isError is True
        assert result.content[0].text == "❌ Error: Unknown tool: unknown_tool"
        assert sent_requests == []

    @pytest.mark.asyncio
    async def test_session_end_closes_http_client(self, make_client):
        fastalert = make_client(lambda request: httpx.Response(200, json={}))
        server = create_server(fastalert)

        async with Client(server) as session:
            await session.list_tools()
            assert fastalert.is_closed is False

        assert fastalert.is_closed is True
