"""HTTP-backed action handler."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import requests

logger = logging.getLogger(__name__)


class ApiHandler:
    """Performs one HTTP request per action.

    Params: ``url`` (required), ``method`` (default GET), ``json``, ``query``,
    ``headers`` and ``resultKey`` (the context key the response is stored
    under, default ``api``).

    The blocking ``requests`` call runs in a worker thread; the handler applies
    its own timeout because the engine never cancels handlers. HTTP and
    transport errors propagate and are reported by the engine as action
    failures.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", "workflow-runtime")

    def _url(self, url: str) -> str:
        if self._base_url and not url.startswith(("http://", "https://")):
            return f"{self._base_url}/{url.lstrip('/')}"
        return url

    def _request(self, params: Mapping[str, Any]) -> requests.Response:
        url = params.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ValueError("'url' is required")
        method = str(params.get("method") or "GET").upper()
        logger.debug("API action request", extra={"method": method, "url": url})
        resp = self._session.request(
            method,
            self._url(url),
            json=params.get("json"),
            params=params.get("query"),
            headers=params.get("headers"),
            timeout=self._timeout,
        )
        resp.raise_for_status()
        return resp

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        resp = await asyncio.to_thread(self._request, params)
        try:
            data: Any = resp.json() if resp.content else None
        except ValueError:
            data = resp.text
        result_key = str(params.get("resultKey") or "api")
        return {result_key: {"success": True, "status": resp.status_code, "data": data}}
