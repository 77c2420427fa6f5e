"""Unit tests for operator authentication."""

from unittest.mock import Mock, patch

import pytest

from storeguard.core.auth import (
    parse_api_keys,
    reject_blocked_user_agents,
    validate_api_key,
    verify_admin_api_key,
)
from storeguard.core.errors import AuthenticationAppError


class TestParseAPIKeys:
    """Test API key parsing utility function."""

    def test_parse_single_key(self) -> None:
        """Test parsing a single API key."""
        result = parse_api_keys("my-secret-key")
        assert result == {"my-secret-key"}

    def test_parse_keys_with_whitespace(self) -> None:
        """Test that whitespace is trimmed from keys."""
        result = parse_api_keys("key1 , key2  ,  key3")
        assert result == {"key1", "key2", "key3"}

    def test_parse_none_returns_empty_set(self) -> None:
        """Test that None input returns empty set."""
        assert parse_api_keys(None) == set()

    def test_parse_whitespace_only_returns_empty_set(self) -> None:
        """Test that whitespace-only string returns empty set."""
        assert parse_api_keys("   ,  ,  ") == set()

    def test_parse_removes_duplicate_keys(self) -> None:
        """Test that duplicate keys are deduplicated."""
        result = parse_api_keys("key1,key2,key1,key3,key2")
        assert result == {"key1", "key2", "key3"}


class TestValidateAPIKey:
    """Test core API key validation logic."""

    @patch("storeguard.core.auth.settings")
    def test_validate_bypassed_when_auth_disabled(self, mock_settings) -> None:
        """Validation is skipped when GUARD_ADMIN_API_KEY_REQUIRED=false."""
        mock_settings.guard.admin_api_key_required = False

        validate_api_key("any-random-key")
        validate_api_key("")

    @patch("storeguard.core.auth.settings")
    def test_validate_raises_when_no_keys_configured(self, mock_settings) -> None:
        """Error when authentication is required but no keys are configured."""
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("some-key")

        assert exc_info.value.code == "api_keys_not_configured"
        assert "no valid keys are configured" in exc_info.value.message

    @patch("storeguard.core.auth.settings")
    def test_validate_accepts_valid_key(self, mock_settings) -> None:
        """Test that valid API key passes validation."""
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = "valid-key-1,valid-key-2"

        validate_api_key("valid-key-1")
        validate_api_key("valid-key-2")

    @patch("storeguard.core.auth.settings")
    def test_validate_rejects_invalid_key(self, mock_settings) -> None:
        """Test that invalid API key is rejected."""
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = "valid-key-1,valid-key-2"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("invalid-key")

        assert exc_info.value.code == "invalid_api_key"
        assert "Invalid or missing API key" in exc_info.value.message

    @patch("storeguard.core.auth.settings")
    def test_validate_does_not_trim_provided_key(self, mock_settings) -> None:
        """Configured keys are trimmed, provided keys are compared verbatim."""
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = " key1 , key2 "

        validate_api_key("key1")

        with pytest.raises(AuthenticationAppError):
            validate_api_key(" key1 ")


class TestVerifyAdminAPIKeyDependency:
    """Test FastAPI dependency for operator API key verification."""

    @pytest.mark.asyncio
    @patch("storeguard.core.auth.settings")
    async def test_verify_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.guard.admin_api_key_required = False

        await verify_admin_api_key(x_api_key=None)

    @pytest.mark.asyncio
    @patch("storeguard.core.auth.settings")
    async def test_verify_raises_when_header_missing(self, mock_settings) -> None:
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verify_admin_api_key(x_api_key=None)

        assert exc_info.value.code == "missing_api_key"
        assert "Missing API key" in exc_info.value.message

    @pytest.mark.asyncio
    @patch("storeguard.core.auth.settings")
    async def test_verify_raises_when_key_invalid(self, mock_settings) -> None:
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            await verify_admin_api_key(x_api_key="wrong-key")

        assert exc_info.value.code == "invalid_api_key"

    @pytest.mark.asyncio
    @patch("storeguard.core.auth.settings")
    async def test_verify_accepts_valid_key(self, mock_settings) -> None:
        mock_settings.guard.admin_api_key_required = True
        mock_settings.guard.admin_api_keys = "my-valid-key,another-key"

        await verify_admin_api_key(x_api_key="my-valid-key")
        await verify_admin_api_key(x_api_key="another-key")


class TestRejectBlockedUserAgents:
    """Scanner user agents are refused on operator routes."""

    @staticmethod
    def _request(user_agent: str | None) -> Mock:
        request = Mock()
        headers = {} if user_agent is None else {"user-agent": user_agent}
        request.headers = headers
        request.url.path = "/v1/admin/rate-limits/stats"
        return request

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_agent",
        ["sqlmap/1.7.2#stable", "Nikto/2.5.0", "curl/8.4.0", "python-requests/2.31", "Go-http-client/1.1"],
    )
    async def test_blocked_agents_raise(self, user_agent: str) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            await reject_blocked_user_agents(self._request(user_agent))

        assert exc_info.value.code == "access_denied"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_agent",
        ["Mozilla/5.0 (X11; Linux x86_64) Firefox/120.0", "testclient", None],
    )
    async def test_other_agents_pass(self, user_agent: str | None) -> None:
        await reject_blocked_user_agents(self._request(user_agent))

    @pytest.mark.asyncio
    @patch("storeguard.core.auth.settings")
    async def test_blocklist_is_configurable(self, mock_settings) -> None:
        mock_settings.guard.blocked_user_agents = "badbot"

        await reject_blocked_user_agents(self._request("curl/8.4.0"))

        with pytest.raises(AuthenticationAppError):
            await reject_blocked_user_agents(self._request("BadBot/1.0"))
