"""
Google Places resolution of restaurant names (Dublin area)
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx
from geopy.distance import geodesic

from config import GOOGLE_MAPS_API_KEY, PLACES
from pacing import FixedDelay

logger = logging.getLogger(__name__)


def empty_place(name: str) -> Dict:
    return {'name': name, 'lat': None, 'lng': None, 'place_id': None, 'formatted_address': None}


class PlaceResolver:
    """Resolve names through Text Search, then confirm with Place Details"""

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None, pacer=None):
        self.api_key = api_key
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=PLACES['request_timeout'])
        self.pacer = pacer or FixedDelay.from_ms(PLACES['pause_ms'])

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    def text_search_body(self, name: str) -> Dict:
        lat, lng = PLACES['center']
        return {
            'textQuery': name,
            'languageCode': 'en',
            'regionCode': PLACES['region_code'],
            'includedType': PLACES['included_type'],
            'locationBias': {
                'circle': {
                    'center': {'latitude': lat, 'longitude': lng},
                    'radius': PLACES['radius_m'],
                }
            },
        }

    async def text_search(self, name: str) -> Optional[Dict]:
        """Return the first text search candidate, or None"""
        response = await self.client.post(
            PLACES['text_search_url'],
            json=self.text_search_body(name),
            headers={
                'Content-Type': 'application/json',
                'X-Goog-Api-Key': self.api_key,
                'X-Goog-FieldMask': 'places.id,places.formattedAddress,places.location',
            },
        )
        if response.status_code != 200:
            logger.warning(f"Text Search failed for {name}: {response.status_code}")
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Text Search returned invalid JSON for {name}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Text Search returned unexpected payload for {name}")
            return None

        places = data.get('places') or []
        if not places or not isinstance(places[0], dict):
            logger.warning(f"No candidate found for {name}")
            return None
        return places[0]

    async def place_details(self, name: str, place_id: str) -> Optional[Dict]:
        try:
            response = await self.client.get(
                PLACES['details_url'].format(place_id=place_id),
                params={'languageCode': 'en'},
                headers={
                    'X-Goog-Api-Key': self.api_key,
                    'X-Goog-FieldMask': 'id,formattedAddress,location',
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Place Details error for {name}: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"Place Details failed for {name}: {response.status_code}")
            return None

        try:
            details = response.json()
        except ValueError as e:
            logger.warning(f"Place Details returned invalid JSON for {name}: {e}")
            return None
        if not isinstance(details, dict):
            logger.warning(f"Place Details returned unexpected payload for {name}")
            return None
        return details

    async def resolve(self, name: str) -> Dict:
        """Resolve one name into a place record; failures give an all-None record"""
        name = name.strip()
        logger.info(f"Searching for: {name}")

        try:
            candidate = await self.text_search(name)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Text Search error for {name}: {e}")
            return empty_place(name)
        if candidate is None:
            return empty_place(name)

        details = {}
        if candidate.get('id'):
            details = await self.place_details(name, candidate['id']) or {}

        details_location = _location(details)
        candidate_location = _location(candidate)

        return {
            'name': name,
            'lat': _first_present(details_location.get('latitude'), candidate_location.get('latitude')),
            'lng': _first_present(details_location.get('longitude'), candidate_location.get('longitude')),
            'place_id': _first_present(details.get('id'), candidate.get('id')),
            'formatted_address': _first_present(details.get('formattedAddress'), candidate.get('formattedAddress')),
        }

    async def resolve_all(self, names: List[str]) -> List[Dict]:
        """Resolve names one at a time, in order, pausing between lookups"""
        results = []
        for i, name in enumerate(names):
            results.append(await self.resolve(name))
            if i < len(names) - 1:
                await self.pacer.wait()

        resolved = sum(1 for r in results if r['place_id'])
        logger.info(f"Resolved {resolved}/{len(results)} places")
        return results


def _location(record: Dict) -> Dict:
    location = record.get('location')
    return location if isinstance(location, dict) else {}


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


async def resolve_places(names: List[str], api_key: Optional[str] = GOOGLE_MAPS_API_KEY,
                         client: Optional[httpx.AsyncClient] = None, pacer=None) -> List[Dict]:
    if not isinstance(names, list) or not names:
        raise ValueError("Expected a non-empty list of restaurant names")
    if not api_key:
        raise ValueError("Google API key is required")

    async with PlaceResolver(api_key, client=client, pacer=pacer) as resolver:
        return await resolver.resolve_all(names)


def format_places(records: Iterable[Dict]) -> Dict[str, Dict]:
    """Key place records by place_id, dropping unresolved ones"""
    formatted = {}
    for place in records:
        if place and place.get('place_id'):
            formatted[place['place_id']] = {
                'name': place.get('name'),
                'lat': place.get('lat'),
                'lng': place.get('lng'),
                'formatted_address': place.get('formatted_address'),
            }
    return formatted


def filter_dublin_places(places: Union[Mapping[str, Dict], List[Dict]],
                         center: Tuple[float, float] = PLACES['center'],
                         max_distance_km: float = PLACES['max_distance_km']) -> Dict:
    """Keep places whose address mentions Dublin or that lie within max_distance_km of center"""
    if isinstance(places, list):
        entries = list(enumerate(places))
    else:
        entries = list(places.items())

    filtered = {}
    for place_id, info in entries:
        if not info or not info.get('formatted_address'):
            continue

        if 'dublin' in info['formatted_address'].lower():
            filtered[place_id] = info
            continue

        lat, lng = info.get('lat'), info.get('lng')
        if lat is None or lng is None:
            continue
        if geodesic(center, (lat, lng)).km <= max_distance_km:
            filtered[place_id] = info

    logger.info(f"Kept {len(filtered)}/{len(entries)} places in the Dublin area")
    return filtered
