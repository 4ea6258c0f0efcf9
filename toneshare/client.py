"""HTTP client for the toneshare persistence API.

Usage::

    client = SetupClient("http://127.0.0.1:3000")
    for record in client.list_setups():
        ...
    client.publish(record)

Every transport, HTTP-status or decoding problem surfaces as
:class:`ExternalServiceFailure` so the editor can turn it into a notice.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Optional

from toneshare.errors import ExternalServiceFailure

DEFAULT_TIMEOUT = 10.0


logger = logging.getLogger(__name__)


class SetupClient:
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, body: Optional[dict] = None):
        url = f"{self.base_url}{path}"
        data = None
        headers = {"Accept": "application/json"}
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug("[Client] %s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                payload = resp.read()
        except urllib.error.HTTPError as e:
            raise ExternalServiceFailure(
                f"{method} {path} failed ({e.code}): {_error_message(e)}") from e
        except (urllib.error.URLError, OSError) as e:
            raise ExternalServiceFailure(f"cannot reach {self.base_url}: {e}") from e
        try:
            return json.loads(payload.decode("utf-8")) if payload else None
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ExternalServiceFailure(f"{method} {path}: invalid JSON response") from e

    def list_setups(self) -> list[dict]:
        result = self._request("GET", "/api/setups")
        if not isinstance(result, list):
            raise ExternalServiceFailure("GET /api/setups: expected a list")
        return result

    def publish(self, record: dict):
        self._request("POST", "/api/setups", record)

    def install(self) -> str:
        result = self._request("POST", "/api/install") or {}
        return result.get("message", "")


def _error_message(err: urllib.error.HTTPError) -> str:
    """Pull the ``error`` field out of a JSON error body, if there is one."""
    try:
        body = json.loads(err.read().decode("utf-8"))
    except (OSError, ValueError):
        return err.reason
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return err.reason
