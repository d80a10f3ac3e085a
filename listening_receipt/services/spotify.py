"""Spotify API integration service"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from listening_receipt.config import settings
from listening_receipt.errors import FetchError
from listening_receipt.models.track import ARTIST_SEPARATOR, Profile, Track

logger = logging.getLogger(__name__)

# Spotify rejects larger values on top items and several-artists endpoints
SPOTIFY_MAX_LIMIT = 50

def _get_image_url(images_list: Optional[List[Dict]], preferred_index: int = 0) -> Optional[str]:
    """Safely extracts an image URL from Spotify's image list."""
    if not images_list or not isinstance(images_list, list):
        return None
    if len(images_list) > preferred_index and isinstance(images_list[preferred_index], dict):
        return images_list[preferred_index].get('url')
    for img in images_list:
        if isinstance(img, dict) and img.get('url'):
            return img.get('url')
    return None

def _get_spotify_url(external_urls: Optional[Dict[str, str]]) -> Optional[str]:
    """Safely extracts the Spotify URL from external_urls."""
    if isinstance(external_urls, dict):
        return external_urls.get('spotify')
    return None

def _get_artists_info(artists_list: Optional[List[Dict]]) -> Tuple[List[str], List[str]]:
    """
    Names and IDs of every performer, in the order Spotify lists them.

    Both lists stay index-aligned: a performer missing only one of the two
    gets "" in that slot, so the first name and first ID always belong to the
    same artist.
    """
    names: List[str] = []
    ids: List[str] = []
    if isinstance(artists_list, list):
        for artist in artists_list:
            if not isinstance(artist, dict):
                continue
            if not artist.get('name') and not artist.get('id'):
                continue
            names.append(artist.get('name') or "")
            ids.append(artist.get('id') or "")
    return names, ids

def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (ValueError, TypeError):
        return default

def map_track(raw: Dict[str, Any]) -> Track:
    """Map a Spotify track object to the internal Track"""
    names, ids = _get_artists_info(raw.get('artists'))
    album = raw.get('album') if isinstance(raw.get('album'), dict) else {}
    duration = _as_int(raw.get('duration_ms'))
    if duration < 0:
        logger.warning(f"Negative duration {duration} for track {raw.get('id')}, using 0")
        duration = 0
    return Track(
        id=raw.get('id') or "",
        name=raw.get('name') or "",
        artist=ARTIST_SEPARATOR.join(names),
        duration_ms=duration,
        popularity=_as_int(raw.get('popularity')),
        explicit=bool(raw.get('explicit', False)),
        album_art=_get_image_url(album.get('images')),
        release_date=album.get('release_date') or None,
        url=_get_spotify_url(raw.get('external_urls')),
        artist_ids=tuple(ids),
    )


class SpotifyAPI:
    """Handles Spotify Web API reads for one access token"""

    def __init__(self, token: str, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        """
        Initialize with Spotify access token
        """
        if not token:
            raise ValueError("Spotify token cannot be empty")
        self.token = token
        self.base_url = (base_url or settings.SPOTIFY_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """Make one authenticated GET request. Failures are not retried."""
        url = f'{self.base_url}/{endpoint}'
        logger.debug(f"Making request to {url} | Params: {params}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise FetchError(None, str(e), url) from e

        if not response.ok:
            reason = response.reason or f"HTTP {response.status_code}"
            if response.status_code == 401:
                logger.error(f"Spotify token is invalid or expired (401) for {url}.")
            elif response.status_code == 403:
                logger.error(f"Forbidden access (403) to Spotify endpoint {url}. Check scopes/permissions.")
            else:
                logger.error(f"Spotify returned {response.status_code} ({reason}) for {url}.")
            raise FetchError(response.status_code, reason, url)

        try:
            json_response = response.json()
        except ValueError:
            logger.error(f"Failed to decode JSON response from {url}. Status: {response.status_code}. Response text: {response.text[:200]}")
            return {}
        return json_response if isinstance(json_response, dict) else {}

    def get_user_info(self) -> Dict[str, Any]:
        """Get basic user profile information"""
        logger.info("Fetching user info...")
        return self._make_request('me')

    def fetch_profile(self) -> Profile:
        user_info = self.get_user_info()
        return Profile(display_name=user_info.get('display_name') or None, user_id=user_info.get('id'))

    def get_top_tracks(self, time_range: str, limit: int = SPOTIFY_MAX_LIMIT) -> List[Dict]:
        """
        Get user's top tracks

        Args:
            time_range: short_term (4 weeks), medium_term (6 months), or long_term (years).
                Passed through as-is, Spotify rejects unknown values.
            limit: Number of tracks to fetch (Spotify API max is 50).
        """
        actual_limit = min(limit, SPOTIFY_MAX_LIMIT)
        logger.info(f"Fetching top tracks (range: {time_range}, limit: {actual_limit})...")
        response_data = self._make_request('me/top/tracks', params={'time_range': time_range, 'limit': actual_limit})
        items = response_data.get('items')
        if isinstance(items, list):
            return [item for item in items if isinstance(item, dict)]
        logger.warning(f"Unexpected response format for top tracks ({time_range}): {response_data}")
        return []

    def fetch_top_tracks(self, time_range: str, limit: Optional[int] = None) -> Tuple[List[Track], List[str]]:
        """
        Top tracks mapped to Track, plus every distinct artist ID they mention.

        Always requests the full limit so the receipt can be re-sliced without
        another fetch.
        """
        raw_tracks = self.get_top_tracks(time_range, limit or settings.TOP_TRACKS_LIMIT)
        tracks = [map_track(raw) for raw in raw_tracks]

        artist_ids: List[str] = []
        seen = set()
        for track in tracks:
            for artist_id in track.artist_ids:
                if artist_id and artist_id not in seen:
                    seen.add(artist_id)
                    artist_ids.append(artist_id)
        logger.info(f"Mapped {len(tracks)} top tracks with {len(artist_ids)} distinct artists.")
        return tracks, artist_ids

    def get_artists(self, artist_ids: List[str]) -> List[Dict[str, Any]]:
        """Get artist objects for one batch of at most 50 IDs"""
        if not artist_ids:
            return []
        if len(artist_ids) > SPOTIFY_MAX_LIMIT:
            raise ValueError(f"At most {SPOTIFY_MAX_LIMIT} artist IDs per request, got {len(artist_ids)}")
        response_data = self._make_request('artists', params={'ids': ",".join(artist_ids)})
        artists = response_data.get('artists')
        if not isinstance(artists, list):
            logger.warning(f"Unexpected response format for artists batch starting with {artist_ids[0]}")
            return []
        # Unknown IDs come back as null entries
        return [artist for artist in artists if isinstance(artist, dict) and artist.get('id')]
