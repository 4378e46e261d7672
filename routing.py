"""
OpenRouteService client (health, status and matrix endpoints)
"""

import json
import logging
from typing import Dict, List, Optional, Sequence

import httpx

from config import MATRIX, ORS_BASE_URL, OPEN_ROUTE_SERVICE_API_KEY

logger = logging.getLogger(__name__)


class ORSClient:
    """Thin async wrapper around the ORS v2 REST API"""

    def __init__(self, base_url: str = ORS_BASE_URL, api_key: Optional[str] = OPEN_ROUTE_SERVICE_API_KEY,
                 timeout: float = MATRIX['request_timeout'], profile: str = MATRIX['profile'],
                 client: Optional[httpx.AsyncClient] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.profile = profile
        headers = {
            'Content-Type': 'application/json; charset=utf-8',
            'Accept': 'application/json, application/geo+json, application/gpx+xml, img/png; charset=utf-8',
        }
        if api_key:
            headers['Authorization'] = api_key

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout, headers=headers, transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def get(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        try:
            response = await self.client.get(endpoint, params=params or {})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            self._log_error(e)
            raise

    async def post(self, endpoint: str, body: Optional[Dict] = None) -> Dict:
        try:
            response = await self.client.post(endpoint, json=body or {})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            self._log_error(e)
            raise

    def _log_error(self, error: httpx.HTTPError):
        if isinstance(error, httpx.HTTPStatusError):
            logger.error(f"ORS HTTP {error.response.status_code}: {error.response.text[:500]}")
        else:
            logger.error(f"ORS connection error: {error}")

    async def health(self) -> Dict:
        return await self.get('/health')

    async def status(self) -> Dict:
        return await self.get('/status')

    async def matrix(self, locations: Sequence[Sequence[float]], sources: Optional[List[int]] = None,
                     destinations: Optional[List[int]] = None, metrics: Sequence[str] = ('distance',),
                     profile: Optional[str] = None) -> Dict:
        """Request a distance matrix; locations are [lng, lat] pairs"""
        body = {
            'locations': [list(loc) for loc in locations],
            'metrics': list(metrics),
        }
        if sources is not None:
            body['sources'] = list(sources)
        if destinations is not None:
            body['destinations'] = list(destinations)
        return await self.post(f"/matrix/{profile or self.profile}", body)


async def check_matrix(client: ORSClient, profile: str = MATRIX['profile']) -> Dict:
    """Two-point sanity check against the matrix endpoint"""
    locations = [
        [-6.2597, 53.3478],  # O'Connell St
        [-6.2551, 53.3422],  # Grafton St
    ]
    data = await client.matrix(locations, profile=profile)
    logger.info(f"{profile} matrix response:\n{json.dumps(data, indent=2)}")
    return data
