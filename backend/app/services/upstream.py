"""HTTP client for the backpack.tf web API.

Every call opens its own aiohttp session so nothing is shared between
requests; the ``async with`` blocks release the connection on every
exit path, including timeouts and decode failures.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .config import DEFAULT_UPSTREAM_BASE_URL, DEFAULT_UPSTREAM_TIMEOUT_SECONDS, TF2_APP_ID
from .errors import UpstreamDecodeError, UpstreamLogicalFailure, UpstreamTransportError

logger = logging.getLogger(__name__)

CURRENCIES_PATH = "/IGetCurrencies/v1"
PRICE_HISTORY_PATH = "/IGetPriceHistory/v1"


class UpstreamClient:
    """Performs a single bounded GET against backpack.tf and decodes the envelope."""

    def __init__(
        self,
        base_url: str = DEFAULT_UPSTREAM_BASE_URL,
        timeout_seconds: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        app_id: int = TF2_APP_ID,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.app_id = app_id

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]],
        api_key: str,
    ) -> Dict[str, Any]:
        """GET ``path`` and return the decoded JSON object.

        Args:
            path: Endpoint path, e.g. CURRENCIES_PATH
            params: Extra query parameters
            api_key: backpack.tf API key, sent as ``key``

        Returns:
            The decoded payload; its ``response.success`` is guaranteed to be 1.

        Raises:
            UpstreamTransportError: Network failure or timeout
            UpstreamDecodeError: Body is not a JSON object
            UpstreamLogicalFailure: Upstream reported success != 1
        """
        query = {"key": api_key}
        query.update({k: str(v) for k, v in (params or {}).items()})
        query["appid"] = str(self.app_id)
        url = f"{self.base_url}{path}"

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=query) as resp:
                    status = resp.status
                    raw = await resp.read()
        except asyncio.TimeoutError as e:
            raise UpstreamTransportError(f"Timed out calling {path}") from e
        except aiohttp.ClientError as e:
            raise UpstreamTransportError(f"Error calling {path}: {e}") from e

        body = raw.decode("utf-8", errors="replace")

        logger.debug(f"GET {path} returned HTTP {status} ({len(body)} bytes)")

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise UpstreamDecodeError(f"Invalid JSON from {path}: {e}") from e

        if not isinstance(payload, dict):
            raise UpstreamDecodeError(
                f"Expected JSON object from {path}, got {type(payload).__name__}"
            )

        envelope = payload.get("response")
        if not isinstance(envelope, dict):
            envelope = {}

        if envelope.get("success") != 1:
            message = envelope.get("message") or ""
            raise UpstreamLogicalFailure(str(message), body)

        return payload
