"""HTTP transport for the remote explanation endpoint."""

from __future__ import annotations

import json
import socket
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Mapping, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

STATUS_OK = "ok"
STATUS_HTTP_ERROR = "http_error"
STATUS_NO_RESPONSE = "no_response"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class TransportOutcome:
    """Tagged result of a single POST; expected failures are values, not exceptions."""

    status: str
    status_code: Optional[int] = None
    status_text: str = ""
    body: Any = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class Transport(Protocol):
    def post(
        self,
        url: str,
        payload: Mapping[str, Any],
        headers: Mapping[str, str],
        timeout: float,
    ) -> TransportOutcome: ...


class HttpTransport:
    """POSTs JSON with urllib and classifies the outcome."""

    def post(
        self,
        url: str,
        payload: Mapping[str, Any],
        headers: Mapping[str, str],
        timeout: float,
    ) -> TransportOutcome:
        try:
            data = json.dumps(payload).encode("utf-8")
            http_request = Request(url, data=data, headers=dict(headers), method="POST")
        except (TypeError, ValueError) as exc:
            return TransportOutcome(status=STATUS_ERROR, error=str(exc))

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
                status_code = getattr(response, "status", 200)
        except HTTPError as exc:
            return TransportOutcome(
                status=STATUS_HTTP_ERROR,
                status_code=exc.code,
                status_text=str(exc.reason or ""),
                body=_read_error_body(exc),
            )
        except URLError as exc:
            return TransportOutcome(status=STATUS_NO_RESPONSE, error=str(exc.reason))
        except (socket.timeout, TimeoutError) as exc:
            return TransportOutcome(status=STATUS_NO_RESPONSE, error=f"timed out: {exc}")
        except ConnectionError as exc:
            return TransportOutcome(status=STATUS_NO_RESPONSE, error=str(exc))
        except (HTTPException, OSError, ValueError) as exc:
            return TransportOutcome(status=STATUS_ERROR, error=str(exc))

        if not raw or not raw.strip():
            return TransportOutcome(status=STATUS_OK, status_code=status_code, body=None)
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            return TransportOutcome(
                status=STATUS_ERROR, error=f"invalid JSON in response: {exc}"
            )
        return TransportOutcome(status=STATUS_OK, status_code=status_code, body=body)


def _read_error_body(exc: HTTPError) -> Any:
    try:
        raw = exc.read()
    except (OSError, HTTPException):
        return None
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


__all__ = [
    "HttpTransport",
    "STATUS_ERROR",
    "STATUS_HTTP_ERROR",
    "STATUS_NO_RESPONSE",
    "STATUS_OK",
    "Transport",
    "TransportOutcome",
]
