"""Fetch, genre resolution and aggregation for one listening report"""
import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional

from listening_receipt.aggregation import SummaryCalculator, top_artists, top_genres
from listening_receipt.config import Settings, settings as default_settings
from listening_receipt.errors import FetchError, NotAuthenticatedError
from listening_receipt.genres import GenreResolver
from listening_receipt.models.track import ListeningReport
from listening_receipt.services.auth import AuthSession
from listening_receipt.services.spotify import SpotifyAPI

logger = logging.getLogger(__name__)

class ReportPipeline:
    """
    Builds listening reports for the logged-in user.

    Each load() takes a new generation number. A load that finishes after a
    newer one has started is stale: its report is dropped and never replaces
    the latest one. In-flight requests are not aborted.
    """

    def __init__(self, auth: AuthSession, settings: Optional[Settings] = None,
                 api_factory: Optional[Callable[[str], SpotifyAPI]] = None,
                 calculator: Optional[SummaryCalculator] = None):
        self.auth = auth
        self.settings = settings or default_settings
        self.api_factory = api_factory or (lambda token: SpotifyAPI(
            token=token,
            base_url=self.settings.SPOTIFY_API_URL,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
        ))
        self.calculator = calculator or SummaryCalculator()
        self._generations = itertools.count(1)
        self._current_generation = 0
        self._lock = threading.Lock()
        self._latest: Optional[ListeningReport] = None

    @property
    def latest(self) -> Optional[ListeningReport]:
        return self._latest

    def _next_generation(self) -> int:
        with self._lock:
            self._current_generation = next(self._generations)
            return self._current_generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._current_generation

    def load(self, time_range: str) -> Optional[ListeningReport]:
        """
        Build a report for time_range.

        Returns:
            The new report, or None when a newer load superseded this one

        Raises:
            NotAuthenticatedError: no access token stored
            FetchError: profile or top tracks request failed; the token is cleared.
                A superseded load returns None instead and leaves the token alone
        """
        generation = self._next_generation()
        token = self.auth.access_token
        if not token:
            raise NotAuthenticatedError()

        api = self.api_factory(token)

        # --- Stage 1: profile and top tracks, no ordering between them ---
        logger.info(f"Loading report #{generation} for {time_range}...")
        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="report-fetch") as executor:
                profile_future = executor.submit(api.fetch_profile)
                tracks_future = executor.submit(api.fetch_top_tracks, time_range, self.settings.TOP_TRACKS_LIMIT)
                profile = profile_future.result()
                tracks, artist_ids = tracks_future.result()
        except FetchError as e:
            if not self.is_current(generation):
                logger.info(f"Ignoring failure of stale report #{generation} for {time_range}: {e}")
                return None
            logger.error(f"Failed to load Spotify data: {e}")
            # Treated as an expired session
            self.auth.invalidate()
            raise

        # --- Stage 2: genres, degrades to empty data on failure ---
        resolver = GenreResolver(api, batch_size=self.settings.SPOTIFY_MAX_IDS_PER_BATCH,
                                 max_workers=self.settings.GENRE_MAX_WORKERS)
        assignment = resolver.resolve_genres(tracks, artist_ids)

        # --- Stage 3: aggregate ---
        summary = self.calculator.summarize(tracks, assignment.genre_counts)
        report = ListeningReport(
            username=profile.display_name or self.settings.DEFAULT_USERNAME or "Spotify User",
            time_range=time_range,
            top_tracks=tracks,
            top_artists=top_artists(tracks),
            top_genres=top_genres(assignment.genre_counts, 3, degraded=assignment.degraded),
            summary=summary,
            generated_at=datetime.now(timezone.utc),
            genres_degraded=assignment.degraded,
        )

        # --- Stage 4: commit unless superseded ---
        with self._lock:
            if generation != self._current_generation:
                logger.info(f"Discarding stale report #{generation} for {time_range} "
                            f"(latest request is #{self._current_generation}).")
                return None
            self._latest = report

        logger.info(f"Report #{generation} ready: {summary.track_count} tracks, "
                    f"variety {summary.variety_score:.2f}, {len(summary.genre_counts)} genres.")
        return report
