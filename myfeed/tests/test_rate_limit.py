"""
Tests for API rate limiting.
"""

from unittest.mock import MagicMock, patch

from slowapi.errors import RateLimitExceeded

from myfeed.rate_limit import get_rate_limit, rate_limit_exceeded_handler, rate_limit_key


def make_request(headers: dict[str, str]) -> MagicMock:
    request = MagicMock()
    request.headers = headers
    request.client.host = "203.0.113.7"
    return request


class TestRateLimitKey:

    def test_keyed_by_user(self):
        assert rate_limit_key(make_request({"X-User-Id": " user-1 "})) == "user:user-1"

    def test_falls_back_to_address(self):
        assert rate_limit_key(make_request({})) == "ip:203.0.113.7"


class TestRateLimitConfig:

    def test_configured_limit(self):
        with patch("myfeed.rate_limit.config") as mock_config:
            mock_config.RATE_LIMIT_PER_MINUTE = 30
            assert get_rate_limit() == "30/minute"

    def test_disabled(self):
        with patch("myfeed.rate_limit.config") as mock_config:
            mock_config.RATE_LIMIT_PER_MINUTE = 0
            assert get_rate_limit() == "1000000/minute"


class TestRateLimitHandler:

    def test_returns_429_with_retry_after(self):
        exc = RateLimitExceeded(MagicMock(error_message=None, limit="120 per 1 minute"))
        response = rate_limit_exceeded_handler(MagicMock(), exc)
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"

    def test_requests_pass_under_limit(self, client):
        for _ in range(5):
            assert client.get("/status").status_code == 200
