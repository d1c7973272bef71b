from __future__ import annotations

import math
import time
from dataclasses import dataclass

import requests
from requests import exceptions as req_exc

TRANSIENT_HTTP_STATUSES = {429, 500, 502, 503, 504}
MAX_RETRY_AFTER_S = 60.0


def _retry_after_seconds(headers: dict[str, str]) -> float | None:
    """Parse a delta-seconds ``Retry-After``, capped at ``MAX_RETRY_AFTER_S``.

    Negative, non-finite and HTTP-date values return None.
    """

    retry_after = next(
        (v for k, v in headers.items() if k.lower() == "retry-after"), None
    )
    if not retry_after:
        return None
    try:
        value = float(retry_after)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return min(value, MAX_RETRY_AFTER_S)


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]
    fetched_at: float
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


class HttpClient:
    def __init__(
        self,
        session: requests.Session,
        *,
        timeout_s: int = 45,
        max_retries: int = 2,
        backoff_base_s: float = 1.0,
    ) -> None:
        self._session = session
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._backoff_base_s = backoff_base_s

    def _wait_seconds(
        self, attempt: int, headers: dict[str, str] | None = None
    ) -> float:
        if headers is not None:
            retry_after = _retry_after_seconds(headers)
            if retry_after is not None:
                return retry_after
        return self._backoff_base_s * (2**attempt)

    def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        """GET ``url``, retrying transient statuses and network errors.

        Non-2xx responses that are not retried (or exhaust their retries) are
        returned; RuntimeError is raised only when no response was received.
        """

        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            retries_left = attempt < self._max_retries
            try:
                resp = self._session.get(
                    url,
                    timeout=self._timeout_s,
                    headers=headers,
                    allow_redirects=True,
                )
            except req_exc.RequestException as e:
                last_error = e
                if retries_left:
                    time.sleep(self._wait_seconds(attempt))
                continue

            resp_headers = {k: str(v) for k, v in resp.headers.items()}
            if resp.status_code in TRANSIENT_HTTP_STATUSES and retries_left:
                time.sleep(self._wait_seconds(attempt, resp_headers))
                continue

            return FetchResult(
                url=url,
                final_url=str(resp.url),
                status_code=int(resp.status_code),
                headers=resp_headers,
                fetched_at=time.time(),
                body=resp.content,
            )

        raise RuntimeError(f"Failed to fetch {url}: {last_error}")
