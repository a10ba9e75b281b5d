"""
Shared HTTP sessions.

``create_session`` builds a ``requests.Session`` with a retry strategy and a
default timeout.  The default strategy makes exactly one attempt per request.

Image downloads go through ``image_session``.  A failed image is recorded
in the results table and the batch moves on.

Usage::

    from virtual_herbarium.services.http import image_session

    with image_session.get(url, timeout=300, stream=True) as resp:
        resp.raise_for_status()
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

#: One attempt per request (same as a bare ``requests`` adapter).
NO_RETRY = Retry(total=0, read=False, raise_on_status=False)

DEFAULT_TIMEOUT = 30  # seconds

USER_AGENT = "virtual-herbarium/0.1 (+https://www.gbif.org)"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``NO_RETRY``).
        timeout: Default timeout applied to every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or NO_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT

    # Inject a default timeout so callers don't need to pass ``timeout=``
    # every time.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s


#: One attempt per image; the caller passes its own timeout.
image_session: requests.Session = create_session(timeout=300)
