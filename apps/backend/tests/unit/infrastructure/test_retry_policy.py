"""
Name: Retry Helper Tests

Responsibilities:
  - Classify transient vs permanent errors
  - Retry only transient failures (tenacity), re-raising the last error
"""

import httpx
import pytest
from tesoros.crosscutting.exceptions import (
    ProfileNetworkError,
    ProfileNotFoundError,
)
from tesoros.infrastructure.services.retry import (
    create_retry_decorator,
    get_http_status_code,
    is_transient_error,
)

pytestmark = pytest.mark.unit


class TestClassification:
    def test_flagged_errors_win(self):
        assert is_transient_error(ProfileNetworkError("down", status_code=503))
        assert not is_transient_error(ProfileNotFoundError("missing", status_code=404))

    def test_http_status_error(self):
        request = httpx.Request("GET", "http://store/auth/me")
        response = httpx.Response(503, request=request)
        exc = httpx.HTTPStatusError("boom", request=request, response=response)

        assert get_http_status_code(exc) == 503
        assert is_transient_error(exc)

    def test_transport_errors_are_transient(self):
        assert is_transient_error(httpx.ConnectError("refused"))
        assert is_transient_error(TimeoutError())

    def test_unknown_errors_fail_fast(self):
        assert not is_transient_error(ValueError("bad input"))


class TestDecorator:
    def test_rejects_invalid_configuration(self):
        with pytest.raises(ValueError):
            create_retry_decorator(max_attempts=0)

    def test_retries_transient_until_success(self):
        calls = {"n": 0}

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0)
        def flaky():
            calls["n"] += 1
            if calls["n"] < 3:
                raise ProfileNetworkError("temporarily down")
            return "ok"

        assert flaky() == "ok"
        assert calls["n"] == 3

    def test_does_not_retry_permanent_errors(self):
        calls = {"n": 0}

        @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0)
        def missing():
            calls["n"] += 1
            raise ProfileNotFoundError("no profile", status_code=404)

        with pytest.raises(ProfileNotFoundError):
            missing()
        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_async_functions_reraise_after_last_attempt(self):
        calls = {"n": 0}

        @create_retry_decorator(max_attempts=2, base_delay=0, max_delay=0)
        async def always_down():
            calls["n"] += 1
            raise ProfileNetworkError("down")

        with pytest.raises(ProfileNetworkError):
            await always_down()
        assert calls["n"] == 2
