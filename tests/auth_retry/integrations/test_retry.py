"""Tests for with_auth_retry and request_with_auth_retry."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from auth_retry.coordinator import RefreshCoordinator
from auth_retry.exceptions import RefreshFailedError
from auth_retry.factory import create_auth_retry
from auth_retry.integrations.retry import request_with_auth_retry, with_auth_retry


def _response_error(status):
    return aiohttp.ClientResponseError(
        request_info=MagicMock(), history=(), status=status, message="error"
    )


def _response(status):
    response = MagicMock()
    response.status = status
    response.release = MagicMock()
    return response


@pytest.fixture
def coordinator(adapter):
    core = RefreshCoordinator()
    core.register_adapter(adapter)
    return core


class TestWithAuthRetry:
    @pytest.mark.asyncio
    async def test_success_passes_through(self, coordinator, adapter):
        @with_auth_retry(coordinator)
        async def fetch():
            return "ok"

        assert await fetch() == "ok"
        assert adapter.refresh_count == 0

    @pytest.mark.asyncio
    async def test_retries_once_after_refresh(self, coordinator, adapter):
        calls = []

        @with_auth_retry(coordinator)
        async def fetch(item_id):
            calls.append(item_id)
            if len(calls) == 1:
                raise _response_error(401)
            return f"item-{item_id}"

        assert await fetch(7) == "item-7"
        assert calls == [7, 7]
        assert adapter.refresh_count == 1
        assert adapter.applied == ["new-token"]

    @pytest.mark.asyncio
    async def test_second_auth_failure_propagates(self, coordinator, adapter):
        @with_auth_retry(coordinator)
        async def fetch():
            raise _response_error(401)

        with pytest.raises(aiohttp.ClientResponseError):
            await fetch()
        assert adapter.refresh_count == 1

    @pytest.mark.asyncio
    async def test_non_auth_errors_propagate_without_refresh(self, coordinator, adapter):
        @with_auth_retry(coordinator)
        async def fetch():
            raise _response_error(503)

        with pytest.raises(aiohttp.ClientResponseError):
            await fetch()
        assert adapter.refresh_count == 0

    @pytest.mark.asyncio
    async def test_refresh_failure_raises_refresh_error(self, adapter):
        adapter.token = None
        auth = create_auth_retry(adapter)
        calls = 0

        @with_auth_retry(auth)
        async def fetch():
            nonlocal calls
            calls += 1
            raise _response_error(401)

        with pytest.raises(RefreshFailedError):
            await fetch()
        assert calls == 1
        assert adapter.logout_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_refresh(self, gated_adapter):
        core = RefreshCoordinator()
        core.register_adapter(gated_adapter)
        token_applied = []

        @with_auth_retry(core)
        async def fetch(i):
            if not gated_adapter.applied:
                raise _response_error(401)
            token_applied.append(i)
            return i

        tasks = [asyncio.create_task(fetch(i)) for i in range(4)]
        await asyncio.sleep(0)
        gated_adapter.gate.set()

        assert await asyncio.gather(*tasks) == [0, 1, 2, 3]
        assert gated_adapter.refresh_count == 1

    @pytest.mark.asyncio
    async def test_logs_wrapped_function_name(self, coordinator, caplog):
        calls = []

        @with_auth_retry(coordinator)
        async def fetch_invoice():
            calls.append(1)
            if len(calls) == 1:
                raise _response_error(401)
            return "ok"

        with caplog.at_level(logging.INFO, logger="auth_retry.integrations.retry"):
            assert await fetch_invoice() == "ok"

        record = next(r for r in caplog.records if r.name == "auth_retry.integrations.retry")
        assert record.getMessage() == (
            "Auth error in fetch_invoice, waiting for credential refresh"
        )
        assert record.operation == "fetch_invoice"
        assert record.error_type == "ClientResponseError"

    def test_preserves_function_metadata(self, coordinator):
        @with_auth_retry(coordinator)
        async def fetch_invoice():
            """Fetch an invoice."""

        assert fetch_invoice.__name__ == "fetch_invoice"
        assert fetch_invoice.__doc__ == "Fetch an invoice."


class TestRequestWithAuthRetry:
    @pytest.mark.asyncio
    async def test_returns_first_response_when_authorized(self, coordinator, adapter):
        ok = _response(200)
        session = MagicMock()
        session.request = AsyncMock(return_value=ok)

        response = await request_with_auth_retry(session, coordinator, "GET", "https://api/x")

        assert response is ok
        session.request.assert_awaited_once()
        assert adapter.refresh_count == 0

    @pytest.mark.asyncio
    async def test_reissues_after_401_with_fresh_headers(self, coordinator, adapter):
        unauthorized = _response(401)
        ok = _response(200)
        session = MagicMock()
        session.request = AsyncMock(side_effect=[unauthorized, ok])

        def headers_factory():
            token = adapter.applied[-1] if adapter.applied else "stale"
            return {"Authorization": f"Bearer {token}"}

        response = await request_with_auth_retry(
            session,
            coordinator,
            "POST",
            "https://api/x",
            headers_factory=headers_factory,
            headers={"Accept": "application/json"},
            json={"a": 1},
        )

        assert response is ok
        unauthorized.release.assert_called_once()
        first, second = session.request.await_args_list
        assert first.kwargs["headers"] == {
            "Accept": "application/json",
            "Authorization": "Bearer stale",
        }
        assert second.kwargs["headers"] == {
            "Accept": "application/json",
            "Authorization": "Bearer new-token",
        }
        assert second.args == ("POST", "https://api/x")
        assert second.kwargs["json"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_second_401_is_returned_to_caller(self, coordinator, adapter):
        session = MagicMock()
        session.request = AsyncMock(side_effect=[_response(401), _response(401)])

        response = await request_with_auth_retry(session, coordinator, "GET", "https://api/x")

        assert response.status == 401
        assert session.request.await_count == 2
        assert adapter.refresh_count == 1

    @pytest.mark.asyncio
    async def test_custom_classifier_sees_response(self, adapter):
        classifier = MagicMock(return_value=False)
        core = RefreshCoordinator(error_classifier=classifier)
        core.register_adapter(adapter)
        unauthorized = _response(401)
        session = MagicMock()
        session.request = AsyncMock(return_value=unauthorized)

        response = await request_with_auth_retry(session, core, "GET", "https://api/x")

        assert response is unauthorized
        classifier.assert_called_once_with(unauthorized)
        assert adapter.refresh_count == 0
