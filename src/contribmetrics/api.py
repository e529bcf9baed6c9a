"""Clients for the contribution-management REST backend."""

import asyncio
import logging
from typing import Optional

import aiohttp
import requests

from .config import DEFAULT_API_URL, DEFAULT_TIMEOUT
from .state import COLLECTION_MODELS, DashboardData

logger = logging.getLogger(__name__)

COLLECTIONS = tuple(COLLECTION_MODELS)


class ContribMetricsError(Exception):
    """Base error for contribmetrics."""


class SessionExpiredError(ContribMetricsError):
    """The backend rejected the bearer token (HTTP 401)."""


class DashboardAPI:
    """Client for the dashboard backend's JSON collections."""

    def __init__(self, base_url: str = DEFAULT_API_URL, token: Optional[str] = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "contribmetrics/1.0"
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def get_collection(self, name: str) -> list:
        """Fetch one collection, e.g. "contributions".

        Args:
            name: Collection path under the API root

        Returns:
            List of JSON records, or an empty list if the request failed

        Raises:
            SessionExpiredError: If the backend answers 401
        """
        url = f"{self.base_url}/{name}"

        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error fetching {name}: {e}")
            return []

        if resp.status_code == 401:
            raise SessionExpiredError(f"Session expired while fetching {name}")
        if resp.status_code != 200:
            logger.warning(f"Backend returned status {resp.status_code} for {name}")
            return []

        try:
            data = resp.json()
        except ValueError as e:
            logger.error(f"Invalid JSON for {name}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Expected a list for {name}, got {type(data).__name__}")
            return []
        return data

    def fetch_all(self) -> DashboardData:
        """Fetch every collection one after another."""
        payload = {name: self.get_collection(name) for name in COLLECTIONS}
        return DashboardData.from_payload(payload)


class AsyncDashboardAPI:
    """Async client that fetches all collections concurrently."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str = DEFAULT_API_URL,
                 token: Optional[str] = None, timeout: int = DEFAULT_TIMEOUT):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"User-Agent": "contribmetrics/1.0"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def get_collection(self, name: str) -> list:
        """Fetch one collection; same contract as DashboardAPI.get_collection."""
        url = f"{self.base_url}/{name}"

        try:
            async with self.session.get(url, headers=self.headers,
                                        timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                if resp.status == 401:
                    raise SessionExpiredError(f"Session expired while fetching {name}")
                if resp.status != 200:
                    logger.warning(f"Backend returned status {resp.status} for {name}")
                    return []
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error fetching {name}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Expected a list for {name}, got {type(data).__name__}")
            return []
        return data

    async def fetch_all(self) -> DashboardData:
        results = await asyncio.gather(*(self.get_collection(name) for name in COLLECTIONS))
        return DashboardData.from_payload(dict(zip(COLLECTIONS, results)))


async def fetch_dashboard_data(base_url: str = DEFAULT_API_URL, token: Optional[str] = None,
                               timeout: int = DEFAULT_TIMEOUT) -> DashboardData:
    """Open a session, fetch every collection concurrently and close it again."""
    async with aiohttp.ClientSession() as session:
        api = AsyncDashboardAPI(session, base_url=base_url, token=token, timeout=timeout)
        return await api.fetch_all()
