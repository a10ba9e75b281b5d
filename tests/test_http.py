"""Tests for the shared HTTP client with retry logic."""

from __future__ import annotations

from unittest.mock import patch

import requests
from urllib3.util.retry import Retry

from virtual_herbarium.services.http import (
    DEFAULT_TIMEOUT,
    NO_RETRY,
    create_session,
    image_session,
)


class TestNoRetry:
    """Verify the single-attempt strategy."""

    def test_no_retries(self) -> None:
        assert NO_RETRY.total == 0

    def test_status_left_to_caller(self) -> None:
        assert NO_RETRY.raise_on_status is False


class TestCreateSession:
    """Verify session factory."""

    def test_returns_session(self) -> None:
        s = create_session()
        assert isinstance(s, requests.Session)

    def test_mounts_adapters(self) -> None:
        s = create_session()
        assert isinstance(s.get_adapter("https://example.com"), requests.adapters.HTTPAdapter)
        assert isinstance(s.get_adapter("http://example.com"), requests.adapters.HTTPAdapter)

    def test_single_attempt_by_default(self) -> None:
        adapter = create_session().get_adapter("https://example.com")
        assert adapter.max_retries is NO_RETRY

    def test_custom_retry(self) -> None:
        custom = Retry(total=10, backoff_factor=1)
        s = create_session(retry=custom)
        adapter = s.get_adapter("https://example.com")
        assert adapter.max_retries.total == 10

    def test_user_agent_header(self) -> None:
        s = create_session()
        assert "virtual-herbarium" in s.headers["User-Agent"]

    def test_default_timeout_injected(self) -> None:
        s = create_session(timeout=42)
        prep = requests.Request("GET", "https://example.com").prepare()
        with patch.object(
            requests.adapters.HTTPAdapter, "send", return_value=requests.Response()
        ) as mock_send:
            s.send(prep)
            _, kwargs = mock_send.call_args
            assert kwargs.get("timeout") == 42

    def test_explicit_timeout_not_overridden(self) -> None:
        s = create_session(timeout=42)
        prep = requests.Request("GET", "https://example.com").prepare()
        with patch.object(
            requests.adapters.HTTPAdapter, "send", return_value=requests.Response()
        ) as mock_send:
            s.send(prep, timeout=99)
            _, kwargs = mock_send.call_args
            assert kwargs.get("timeout") == 99


class TestModuleSessions:
    """Verify the module-level singletons."""

    def test_image_session_single_attempt(self) -> None:
        adapter = image_session.get_adapter("https://example.com")
        assert adapter.max_retries is NO_RETRY
        assert adapter.max_retries.total == 0

    def test_default_timeout(self) -> None:
        assert DEFAULT_TIMEOUT == 30
