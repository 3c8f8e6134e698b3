"""Unit tests for SecurityHeadersMiddleware."""

import pytest
from pytest_mock import MockType

from src.api.middleware.security_headers import (
    STATIC_SECURITY_HEADERS,
    SecurityHeadersMiddleware,
)
from src.core.config import SecurityHeadersConfig
from src.core.constants import DEFAULT_HSTS_MAX_AGE


@pytest.mark.unit
class TestSecurityHeadersMiddleware:
    """Test suite for SecurityHeadersMiddleware."""

    async def test_adds_static_headers(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
    ) -> None:
        """Test every static hardening header is added."""
        middleware = SecurityHeadersMiddleware(mock_app)

        result = await middleware.dispatch(
            mock_starlette_request, mock_starlette_call_next
        )

        assert result is mock_starlette_response
        for name, value in STATIC_SECURITY_HEADERS.items():
            assert mock_starlette_response.headers[name] == value

    async def test_default_configurable_headers(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
    ) -> None:
        """Test frame, referrer and HSTS defaults."""
        middleware = SecurityHeadersMiddleware(mock_app)

        await middleware.dispatch(mock_starlette_request, mock_starlette_call_next)

        headers = mock_starlette_response.headers
        assert headers["X-Content-Type-Options"] == "nosniff"
        assert headers["X-Frame-Options"] == "DENY"
        assert headers["Referrer-Policy"] == "no-referrer"
        assert headers["Strict-Transport-Security"] == (
            f"max-age={DEFAULT_HSTS_MAX_AGE}; includeSubDomains"
        )
        assert "Content-Security-Policy" not in headers

    @pytest.mark.parametrize(
        ("config", "expected"),
        [
            (
                SecurityHeadersConfig(hsts_max_age=3600, hsts_include_subdomains=False),
                "max-age=3600",
            ),
            (
                SecurityHeadersConfig(hsts_preload=True),
                f"max-age={DEFAULT_HSTS_MAX_AGE}; includeSubDomains; preload",
            ),
        ],
    )
    async def test_hsts_variants(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
        config: SecurityHeadersConfig,
        expected: str,
    ) -> None:
        """Test HSTS directives follow configuration."""
        middleware = SecurityHeadersMiddleware(mock_app, config=config)

        await middleware.dispatch(mock_starlette_request, mock_starlette_call_next)

        assert mock_starlette_response.headers["Strict-Transport-Security"] == expected

    async def test_hsts_disabled(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
    ) -> None:
        """Test HSTS can be turned off."""
        middleware = SecurityHeadersMiddleware(
            mock_app, config=SecurityHeadersConfig(hsts_enabled=False)
        )

        await middleware.dispatch(mock_starlette_request, mock_starlette_call_next)

        assert "Strict-Transport-Security" not in mock_starlette_response.headers

    async def test_csp_and_frame_options_configurable(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
    ) -> None:
        """Test CSP is added when configured and frame options can change."""
        config = SecurityHeadersConfig(
            frame_options="SAMEORIGIN", content_security_policy="default-src 'self'"
        )
        middleware = SecurityHeadersMiddleware(mock_app, config=config)

        await middleware.dispatch(mock_starlette_request, mock_starlette_call_next)

        headers = mock_starlette_response.headers
        assert headers["X-Frame-Options"] == "SAMEORIGIN"
        assert headers["Content-Security-Policy"] == "default-src 'self'"

    async def test_overrides_route_supplied_values(
        self,
        mock_app: MockType,
        mock_starlette_request: MockType,
        mock_starlette_response: MockType,
        mock_starlette_call_next: MockType,
    ) -> None:
        """Test a weaker value set downstream is replaced."""
        mock_starlette_response.headers["X-Frame-Options"] = "ALLOWALL"
        middleware = SecurityHeadersMiddleware(mock_app)

        await middleware.dispatch(mock_starlette_request, mock_starlette_call_next)

        assert mock_starlette_response.headers["X-Frame-Options"] == "DENY"
