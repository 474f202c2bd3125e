"""
HTTP client for the remote registration API.

Uses aiohttp (aiogram's own transport) with a single lazily-created
ClientSession. The client only moves bytes: it never classifies
responses, so callers decide what a status code means.

Endpoints
---------
POST {base}/api/register        : flattened team payload
GET  {base}/api/list/accepted   : JSON array of accepted teams
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)


class RegistrationApi:
    """
    Parameters
    ----------
    register_url      : full URL of the registration endpoint
    accepted_list_url : full URL of the accepted-teams listing
    session           : optional pre-built session (tests, shared pools)
    """

    def __init__(
        self,
        register_url: str,
        accepted_list_url: str,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.register_url      = register_url
        self.accepted_list_url = accepted_list_url
        self._session          = session
        self._owns_session     = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def post_registration(self, payload: dict[str, Any]) -> tuple[int, Any]:
        """
        Send one registration request.

        Returns (status, body) where body is the decoded JSON response or
        None when the server did not answer with JSON. Transport failures
        propagate as aiohttp.ClientError / asyncio.TimeoutError.
        """
        session = self._get_session()
        async with session.post(self.register_url, json=payload) as resp:
            body = await _read_json(resp)
            logger.debug("POST %s → %d", self.register_url, resp.status)
            return resp.status, body

    async def get_accepted_teams(self) -> list[dict[str, Any]]:
        """Fetch accepted teams. Raises aiohttp.ClientResponseError on non-2xx."""
        session = self._get_session()
        async with session.get(self.accepted_list_url) as resp:
            resp.raise_for_status()
            body = await _read_json(resp)
        if not isinstance(body, list):
            logger.warning("Accepted-teams listing is not a JSON array: %r", type(body))
            return []
        return [item for item in body if isinstance(item, dict)]


async def _read_json(resp: aiohttp.ClientResponse) -> Any:
    try:
        return await resp.json(content_type=None)
    except ValueError:
        return None
