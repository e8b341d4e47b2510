"""
HTTP client for the Capacities API.
Each request opens its own session, sends one authenticated call and decodes the reply.
"""

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp

from .config import Config
from .types import CapacitiesAPIError, OutboundCall

logger = logging.getLogger(__name__)


class CapacitiesClient:
    """Thin async wrapper around the Capacities REST endpoints."""

    def __init__(self, config: Config):
        self.config = config

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.config.token}",
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        }

    def _url(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        url = f"{self.config.api_base}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    async def send(self, call: OutboundCall) -> Dict[str, Any]:
        """Send a prepared call."""
        return await self.request(call.path, call.method, body=call.body, params=call.params)

    async def request(
        self,
        path: str,
        method: str = 'GET',
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Perform one request against the API.

        Args:
            path: Endpoint path, e.g. ``/spaces``
            method: HTTP method
            body: JSON body, omitted when None
            params: Optional query string parameters

        Returns:
            Decoded JSON object, or an empty dict when the body is empty

        Raises:
            CapacitiesAPIError: On a non-2xx status or an undecodable body
        """
        url = self._url(path, params)
        data = json.dumps(body) if body is not None else None
        logger.debug(f"{method} {path}")

        # No timeout: a hung upstream only blocks the invocation that is waiting on it.
        timeout = aiohttp.ClientTimeout(total=None)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, url, data=data, headers=self._headers()) as response:
                if not 200 <= response.status < 300:
                    try:
                        text = await response.text()
                    except (aiohttp.ClientError, UnicodeDecodeError):
                        text = response.reason or ''
                    logger.error(f"{method} {path} failed with status {response.status}")
                    raise CapacitiesAPIError(response.status, text)

                try:
                    text = await response.text()
                except UnicodeDecodeError:
                    logger.error(f"{method} {path} returned an undecodable body")
                    raise CapacitiesAPIError(response.status, "Response body is not valid text")
                logger.info(f"{method} {path} -> {response.status}")

        if not text or not text.strip():
            return {}
        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            raise CapacitiesAPIError(response.status, f"Invalid JSON in response: {text[:200]}")
        if not isinstance(result, dict):
            raise CapacitiesAPIError(
                response.status, f"Expected a JSON object, got {type(result).__name__}: {text[:200]}"
            )
        return result
