"""HTTP retrieval of remote rule lists."""

from __future__ import annotations

import codecs
import time
from dataclasses import dataclass

import httpx
import structlog

from ..config import GlobalConfig
from .converter import RawRule

DEFAULT_TIMEOUT = 10.0


class FetchError(RuntimeError):
    """A single source could not be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class BadStatusError(FetchError):
    """The source answered with a non-success status code."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code}")
        self.status_code = status_code


class SourceTransportError(FetchError):
    """Connection, DNS, TLS or timeout failure."""


@dataclass(slots=True)
class FetchResponse:
    """Lines retrieved from one source."""

    url: str
    status_code: int
    rules: list[RawRule]
    decode_errors: bool = False

    def __len__(self) -> int:
        return len(self.rules)


def decode_body(payload: bytes) -> tuple[str, bool]:
    """Decode UTF-8 with BOM removal, replacing invalid sequences.

    Returns the text and whether any replacement happened.
    """

    if payload.startswith(codecs.BOM_UTF8):
        payload = payload[len(codecs.BOM_UTF8):]
    try:
        return payload.decode("utf-8"), False
    except UnicodeDecodeError:
        return payload.decode("utf-8", errors="replace"), True


def split_rules(text: str, source: str) -> list[RawRule]:
    rules: list[RawRule] = []
    for line in text.split("\n"):
        line = line.strip()
        if line:
            rules.append(RawRule(line, source))
    return rules


class Fetcher:
    """Fetch rule lists over a shared connection pool.

    A single instance is safe to use from the worker threads of one run.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.global_config = global_config
        self.timeout = global_config.request_timeout or DEFAULT_TIMEOUT
        self.logger = logger or structlog.get_logger("adblock2hosts.fetcher")
        headers = {"User-Agent": global_config.user_agent} if global_config.user_agent else None
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch(self, url: str) -> FetchResponse:
        """GET ``url`` and split the body into rules.

        ``timeout`` bounds the whole request, body included; a server that
        keeps trickling bytes past the deadline is treated as timed out.
        """

        log = self.logger.bind(source=url)
        log.info("fetch_started")
        deadline = time.monotonic() + self.timeout
        try:
            with self._client.stream("GET", url, timeout=self.timeout) as response:
                if not response.is_success:
                    raise BadStatusError(url, response.status_code)
                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise SourceTransportError(url, self._timeout_message())
                    chunks.append(chunk)
                status_code = response.status_code
        except httpx.TimeoutException as exc:
            raise SourceTransportError(url, self._timeout_message()) from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise SourceTransportError(url, f"transport error: {type(exc).__name__}") from exc
        if time.monotonic() > deadline:
            raise SourceTransportError(url, self._timeout_message())

        text, decode_errors = decode_body(b"".join(chunks))
        if decode_errors:
            log.warning("decode_fallback", status=status_code)
        rules = split_rules(text, url)
        log.info("fetch_completed", status=status_code, lines=len(rules))
        return FetchResponse(
            url=url,
            status_code=status_code,
            rules=rules,
            decode_errors=decode_errors,
        )

    def _timeout_message(self) -> str:
        return f"timeout after {self.timeout:g}s"


__all__ = [
    "BadStatusError",
    "DEFAULT_TIMEOUT",
    "FetchError",
    "FetchResponse",
    "Fetcher",
    "SourceTransportError",
    "decode_body",
    "split_rules",
]
