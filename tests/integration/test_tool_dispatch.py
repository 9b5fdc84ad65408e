"""
Integration tests for tool dispatch and the session tools.
"""

import pytest
import httpx
from unittest.mock import patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_design_gateway.app.context import create_context
from service_design_gateway.app.handlers import TOOLS, dispatch_tool
from shared.config import GatewaySettings, get_settings
from shared.errors import ConfigurationError
from shared.test_helpers import DesignDataFactory, FakeDesignAPI, make_response


@pytest.fixture
def design_api():
    big_file = DesignDataFactory.file([DesignDataFactory.page("0:9", "Screens", DesignDataFactory.frames(45))], name="Big")
    return FakeDesignAPI({"FILE": DesignDataFactory.sample_file(), "BIG": big_file})


@pytest.fixture
def mock_http(design_api):
    with patch('httpx.AsyncClient') as mock_client:
        mock_client.return_value.__aenter__.return_value.get = design_api.get
        yield design_api


@pytest.fixture
def ctx():
    return create_context(get_settings(figma_api_token="test-token"))


class TestDispatchTool:
    """Test cases for dispatch_tool."""

    def test_registered_tools(self):
        assert set(TOOLS) == {
            "list_pages",
            "list_frames",
            "get_frame_info",
            "search_components",
            "get_file_styles",
            "repeat_last",
            "get_session_state",
            "reset_session",
        }

    @pytest.mark.asyncio
    async def test_runs_handler(self, ctx, mock_http):
        response = await dispatch_tool(ctx, "list_pages", {"file_key": "FILE"})

        assert [p["name"] for p in response["data"]["pages"]] == ["Mobile App", "Components"]

    @pytest.mark.asyncio
    async def test_wire_argument_names(self, ctx, mock_http):
        await dispatch_tool(ctx, "list_frames", {"file_key": "BIG", "page_name": "Screens"})
        second = await dispatch_tool(ctx, "list_frames", {"file_key": "BIG", "page_name": "Screens", "continue": True})

        assert second["_navigation"]["progress"] == "2/3"

        found = await dispatch_tool(ctx, "search_components", {"file_key": "FILE", "query": "button", "type": "COMPONENT_SET"})
        assert [r["id"] for r in found["data"]["results"]] == ["2:1"]

    @pytest.mark.asyncio
    async def test_none_arguments_use_defaults(self, ctx, mock_http):
        response = await dispatch_tool(ctx, "search_components", {"file_key": "FILE", "query": "logo", "page_name": None})

        assert response["data"]["resultCount"] == 1

    @pytest.mark.asyncio
    async def test_unknown_tool(self, ctx):
        response = await dispatch_tool(ctx, "delete_file", {})

        assert response["data"]["code"] == "VALIDATION_ERROR"
        assert response["data"]["error"] == "Unknown tool: delete_file"
        assert response["_navigation"]["step"] == "Error"
        assert response["_navigation"]["progress"] == "Failed"

    @pytest.mark.asyncio
    async def test_unexpected_argument(self, ctx, mock_http):
        response = await dispatch_tool(ctx, "list_pages", {"file_key": "FILE", "depth": 4})

        assert response["data"]["code"] == "VALIDATION_ERROR"
        assert response["data"]["details"] == {"tool": "list_pages", "argument": "depth"}
        assert mock_http.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [{}, {"file_key": None}])
    async def test_missing_required_argument(self, ctx, mock_http, arguments):
        response = await dispatch_tool(ctx, "list_pages", arguments)

        assert response["data"]["code"] == "VALIDATION_ERROR"
        assert response["data"]["error"] == "file_key is required"
        assert response["data"]["details"] == {"tool": "list_pages", "field": "file_key"}
        assert mock_http.calls == []

    @pytest.mark.asyncio
    async def test_missing_second_required_argument(self, ctx, mock_http):
        response = await dispatch_tool(ctx, "search_components", {"file_key": "FILE"})

        assert response["data"]["error"] == "query is required"
        assert mock_http.calls == []

    @pytest.mark.asyncio
    async def test_not_found_becomes_error_envelope(self, ctx, mock_http):
        response = await dispatch_tool(ctx, "list_frames", {"file_key": "FILE", "page_name": "Tablet"})

        assert response["data"]["code"] == "NOT_FOUND"
        assert "Available: Mobile App, Components" in response["data"]["error"]

    @pytest.mark.asyncio
    async def test_missing_token(self, mock_http):
        ctx = create_context(get_settings(figma_api_token=None))

        response = await dispatch_tool(ctx, "list_pages", {"file_key": "FILE"})

        assert response["data"]["code"] == "CONFIGURATION_ERROR"
        assert "FIGMA_API_TOKEN" in response["data"]["error"]
        assert mock_http.calls == []

    @pytest.mark.asyncio
    async def test_token_check_delegates_to_settings(self, ctx, mock_http):
        with patch.object(GatewaySettings, "require_token", side_effect=ConfigurationError("token revoked")) as mock_require:
            response = await dispatch_tool(ctx, "list_pages", {"file_key": "FILE"})

        mock_require.assert_called_once_with()
        assert response["data"]["error"] == "token revoked"
        assert mock_http.calls == []

    @pytest.mark.asyncio
    async def test_session_tools_need_no_token(self):
        ctx = create_context(get_settings(figma_api_token=None))

        response = await dispatch_tool(ctx, "get_session_state")

        assert response["data"]["currentFile"] is None
        assert response["_navigation"]["progress"] == "No active session"

    @pytest.mark.asyncio
    async def test_upstream_failures_propagate(self, ctx, mock_http):
        mock_http.fail("/files/FILE", make_response(403, {"status": 403, "err": "Invalid token"}))

        with pytest.raises(httpx.HTTPStatusError):
            await dispatch_tool(ctx, "list_pages", {"file_key": "FILE"})


class TestSessionTools:
    """repeat_last, get_session_state and reset_session."""

    @pytest.mark.asyncio
    async def test_repeat_last_returns_previous_envelope(self, ctx, mock_http):
        original = await dispatch_tool(ctx, "list_frames", {"file_key": "FILE", "page_name": "Mobile"})

        repeated = await dispatch_tool(ctx, "repeat_last")

        assert repeated == original
        assert len(mock_http.calls) == 1

    @pytest.mark.asyncio
    async def test_repeat_last_without_history(self, ctx):
        response = await dispatch_tool(ctx, "repeat_last")

        assert response["data"] == {"message": "No previous response in session"}

    @pytest.mark.asyncio
    async def test_session_state_reflects_exploration(self, ctx, mock_http):
        await dispatch_tool(ctx, "list_frames", {"file_key": "BIG", "page_name": "Screens"})

        response = await dispatch_tool(ctx, "get_session_state")

        state = response["data"]
        assert state["currentFile"] == "BIG"
        assert state["pendingOperations"] == ["list_frames:BIG:Screens"]
        assert len(state["exploredFrames"]) == 45
        assert state["hasLastResponse"] is True
        assert response["_navigation"]["progress"] == "Active session"

    @pytest.mark.asyncio
    async def test_reset_session(self, ctx, mock_http):
        await dispatch_tool(ctx, "list_frames", {"file_key": "BIG", "page_name": "Screens"})

        response = await dispatch_tool(ctx, "reset_session")
        after = await dispatch_tool(ctx, "list_frames", {"file_key": "BIG", "page_name": "Screens", "continue": True})

        assert response["data"] == {"message": "Session state cleared"}
        assert ctx.session.current_file == "BIG"
        assert after["_navigation"]["progress"] == "1/3"
