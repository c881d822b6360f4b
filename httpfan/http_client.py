"""Sends single HTTP requests to the fan.

Devices on the local network often use self signed certificates, so
certificate validation is turned off for every request.
"""
import asyncio
import logging
from typing import Optional

import aiohttp

from .exceptions import HttpStatusError, TransportError

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Performs one HTTP request per call to :meth:`perform`.

    There are no retries and no timeout besides the aiohttp defaults.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None) -> None:
        """Initialise the executor.

        :param session: The session to send requests with. If None, a session
            is created on first use and closed by :meth:`close`.
        :type session: aiohttp.ClientSession
        """
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def perform(self, url: str, method: str) -> str:
        """Send ``method`` to ``url`` with an empty body and return the body.

        :raise TransportError: If the device could not be reached.
        :raise HttpStatusError: If the device answered with a status other than 200.
        """
        logger.debug("%s %s", method, url)
        session = self._get_session()
        try:
            async with session.request(method, url, data=b"", ssl=False) as resp:
                body = await resp.text(encoding="utf-8", errors="replace")
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise TransportError(str(err) or err.__class__.__name__) from err

        logger.debug("%s %s returned %d: %s", method, url, status, body)
        if status != 200:
            raise HttpStatusError(status)
        return body

    async def close(self) -> None:
        """Close the session if it was created by this executor."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
