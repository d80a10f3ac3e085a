"""Artist genre lookup and per-track primary genre assignment"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from listening_receipt.config import settings
from listening_receipt.errors import GenreResolutionError
from listening_receipt.models.track import Track

logger = logging.getLogger(__name__)

ArtistGenreMap = Dict[str, List[str]]

@dataclass
class GenreLookup:
    """Merged result of all artist batches"""
    genres: ArtistGenreMap = field(default_factory=dict)
    failed_batches: int = 0
    errors: List[GenreResolutionError] = field(default_factory=list)

@dataclass
class GenreAssignment:
    """Primary genre per track and the resulting frequency table"""
    primary_genres: Dict[str, Optional[str]] = field(default_factory=dict)
    genre_counts: Dict[str, int] = field(default_factory=dict)
    degraded: bool = False

def chunk_ids(ids: Sequence[str], size: int) -> List[List[str]]:
    """Split ids into consecutive batches of at most size"""
    if size <= 0:
        raise ValueError("Batch size must be positive")
    return [list(ids[i:i + size]) for i in range(0, len(ids), size)]

def assign_genres(tracks: Sequence[Track], artist_genres: ArtistGenreMap) -> GenreAssignment:
    """
    Give each track the first genre of its first-listed artist.

    Tracks whose primary artist has no known genres get None and are left out
    of the counts.
    """
    assignment = GenreAssignment()
    for track in tracks:
        genres = artist_genres.get(track.primary_artist_id) if track.primary_artist_id else None
        primary_genre = genres[0] if genres else None
        assignment.primary_genres[track.id] = primary_genre
        if primary_genre:
            assignment.genre_counts[primary_genre] = assignment.genre_counts.get(primary_genre, 0) + 1
    return assignment


class GenreResolver:
    """Resolves genres through batched artist lookups on a SpotifyAPI"""

    def __init__(self, api, batch_size: Optional[int] = None, max_workers: Optional[int] = None):
        self.api = api
        self.batch_size = min(batch_size or settings.SPOTIFY_MAX_IDS_PER_BATCH, 50)
        self.max_workers = max_workers or settings.GENRE_MAX_WORKERS

    def _fetch_batch(self, batch: List[str]) -> ArtistGenreMap:
        artists = self.api.get_artists(batch)
        return {artist['id']: list(artist.get('genres') or []) for artist in artists}

    def fetch_artist_genres(self, artist_ids: Sequence[str]) -> GenreLookup:
        """
        Look up genres for all artists, one request per batch.

        Batches are independent and run concurrently. A failed batch is logged
        and skipped; the rest still contribute.
        """
        lookup = GenreLookup()
        batches = chunk_ids([artist_id for artist_id in artist_ids if artist_id], self.batch_size)
        if not batches:
            return lookup

        logger.info(f"Fetching genres for {sum(len(b) for b in batches)} artists in {len(batches)} batch(es)...")
        workers = max(1, min(self.max_workers, len(batches)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="genre-batch") as executor:
            futures = [(batch, executor.submit(self._fetch_batch, batch)) for batch in batches]
            # Merge in submission order so the map does not depend on completion order
            for batch, future in futures:
                try:
                    lookup.genres.update(future.result())
                except Exception as e:
                    error = GenreResolutionError(batch, e)
                    logger.warning(f"Could not fetch genres: {error}")
                    lookup.errors.append(error)
                    lookup.failed_batches += 1

        logger.info(f"Resolved genres for {len(lookup.genres)} artists ({lookup.failed_batches} failed batch(es)).")
        return lookup

    def resolve_genres(self, tracks: Sequence[Track], artist_ids: Sequence[str]) -> GenreAssignment:
        lookup = self.fetch_artist_genres(artist_ids)
        assignment = assign_genres(tracks, lookup.genres)
        assignment.degraded = lookup.failed_batches > 0
        return assignment
