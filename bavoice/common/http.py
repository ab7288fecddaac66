"""HTTP client used for every wiki and static-host request."""

from typing import Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from bavoice.common.config import USER_AGENT, VoiceConfig
from bavoice.common.errors import NetworkFailure


class _TransientStatus(Exception):
    """429 or 5xx response; worth another attempt."""

    def __init__(self, status_code: int):
        super().__init__(f"status {status_code}")
        self.status_code = status_code


_RETRYABLE = (requests.ConnectionError, requests.Timeout, _TransientStatus)


class HttpClient:
    """requests.Session wrapper with a fixed User-Agent, timeout and retry policy.

    Every failure (timeout, connection error, non-2xx) surfaces as
    NetworkFailure so callers have one exception to handle.
    """

    def __init__(
        self,
        user_agent: str = USER_AGENT,
        timeout_s: float = 30.0,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
        verbose: bool = False,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
        })
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: VoiceConfig, verbose: bool = False) -> "HttpClient":
        return cls(
            user_agent=config.user_agent,
            timeout_s=config.timeout_s,
            max_retries=config.max_retries,
            verbose=verbose,
        )

    def _get_once(self, url: str) -> requests.Response:
        resp = self.session.get(url, timeout=self.timeout_s)
        if resp.status_code == 429 or resp.status_code >= 500:
            raise _TransientStatus(resp.status_code)
        return resp

    def _get(self, url: str) -> requests.Response:
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(_RETRYABLE),
        )
        try:
            for attempt in retrying:
                with attempt:
                    if self.verbose and attempt.retry_state.attempt_number > 1:
                        print(f"[http] [retry] {url} (attempt {attempt.retry_state.attempt_number}/{self.max_retries})")
                    resp = self._get_once(url)
        except _TransientStatus as e:
            raise NetworkFailure(url, f"status {e.status_code} after {self.max_retries} attempts", e.status_code) from e
        except requests.Timeout as e:
            raise NetworkFailure(url, f"timed out after {self.timeout_s}s") from e
        except requests.RequestException as e:
            raise NetworkFailure(url, str(e) or e.__class__.__name__) from e

        if not 200 <= resp.status_code < 300:
            raise NetworkFailure(url, f"status {resp.status_code}", resp.status_code)
        if self.verbose:
            print(f"[http] [fetch] {url} ({resp.elapsed.total_seconds():.1f}s)")
        return resp

    def get_text(self, url: str) -> str:
        """Fetch a page and return its decoded body."""
        resp = self._get(url)
        if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
            resp.encoding = resp.apparent_encoding or "utf-8"
        return resp.text

    def get_bytes(self, url: str) -> bytes:
        """Fetch a binary resource (audio file)."""
        return self._get(url).content

    def close(self) -> None:
        self.session.close()
