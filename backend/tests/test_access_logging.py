"""Tests for access logging middleware."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from app.middleware.access_logging import REQUEST_ID_HEADER, AccessLoggingMiddleware
from httpx import AsyncClient
from starlette.requests import Request
from starlette.responses import Response


class TestAccessLoggingMiddleware:
    """Tests for AccessLoggingMiddleware."""

    @pytest.fixture
    def middleware(self) -> AccessLoggingMiddleware:
        """Create middleware instance."""
        app = MagicMock()
        return AccessLoggingMiddleware(app)

    @pytest.fixture
    def mock_request(self) -> MagicMock:
        """Create mock request."""
        request = MagicMock(spec=Request)
        request.method = "POST"
        request.url.path = "/api/v1/lines"
        request.client.host = "127.0.0.1"
        request.headers = {}
        return request

    @pytest.mark.asyncio
    async def test_logs_request_with_structlog(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        """Test that middleware logs requests using structlog."""
        response = Response(status_code=201)
        call_next = AsyncMock(return_value=response)

        with patch("app.middleware.access_logging.logger") as mock_logger:
            result = await middleware.dispatch(mock_request, call_next)

            assert result == response
            mock_logger.info.assert_called_once()
            call_args = mock_logger.info.call_args
            assert call_args[0][0] == "http_request"
            assert call_args[1]["method"] == "POST"
            assert call_args[1]["path"] == "/api/v1/lines"
            assert call_args[1]["status_code"] == 201
            assert call_args[1]["duration_ms"] >= 0
            assert call_args[1]["client_ip"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_handles_missing_client(self, middleware: AccessLoggingMiddleware, mock_request: MagicMock) -> None:
        """Test that middleware handles missing client gracefully."""
        mock_request.client = None
        call_next = AsyncMock(return_value=Response(status_code=200))

        with patch("app.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

            assert mock_logger.info.call_args[1]["client_ip"] == "unknown"

    @pytest.mark.asyncio
    async def test_client_errors_log_at_info(self, middleware: AccessLoggingMiddleware, mock_request: MagicMock) -> None:
        """Test that a rejected section (422) is not a warning."""
        call_next = AsyncMock(return_value=Response(status_code=422))

        with patch("app.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

            mock_logger.info.assert_called_once()
            mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_errors_log_at_warning(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        """Test that 5xx responses are logged as warnings."""
        call_next = AsyncMock(return_value=Response(status_code=500))

        with patch("app.middleware.access_logging.logger") as mock_logger:
            await middleware.dispatch(mock_request, call_next)

            mock_logger.warning.assert_called_once()
            assert mock_logger.warning.call_args[1]["status_code"] == 500

    @pytest.mark.asyncio
    async def test_reuses_incoming_request_id(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        """Test that a caller-supplied request id is echoed back."""
        mock_request.headers = {REQUEST_ID_HEADER: "abc123"}
        call_next = AsyncMock(return_value=Response(status_code=200))

        with patch("app.middleware.access_logging.logger"):
            result = await middleware.dispatch(mock_request, call_next)

        assert result.headers[REQUEST_ID_HEADER] == "abc123"

    @pytest.mark.asyncio
    async def test_binds_request_id_while_handling(
        self, middleware: AccessLoggingMiddleware, mock_request: MagicMock
    ) -> None:
        """Test that logs emitted by the handler carry the request id."""
        mock_request.headers = {REQUEST_ID_HEADER: "req-42"}
        seen: dict[str, object] = {}

        async def call_next(request: Request) -> Response:
            seen.update(structlog.contextvars.get_contextvars())
            return Response(status_code=200)

        with patch("app.middleware.access_logging.logger"):
            await middleware.dispatch(mock_request, call_next)

        assert seen["request_id"] == "req-42"
        assert "request_id" not in structlog.contextvars.get_contextvars()


@pytest.mark.asyncio
async def test_generates_request_id_header(async_client: AsyncClient) -> None:
    """Test that every response carries a generated request id."""
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert len(response.headers[REQUEST_ID_HEADER]) == 32
