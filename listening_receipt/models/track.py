"""Domain models for top tracks and the derived listening summary"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

ARTIST_SEPARATOR = ", "

@dataclass(frozen=True)
class Track:
    """One listened-to track, mapped from a Spotify track record"""
    id: str
    name: str
    artist: str  # performer names joined with ", "
    duration_ms: int
    popularity: int
    explicit: bool = False
    album_art: Optional[str] = None
    release_date: Optional[str] = None
    url: Optional[str] = None
    artist_ids: Tuple[str, ...] = ()

    @property
    def primary_artist(self) -> str:
        """First performer in the joined artist string"""
        return self.artist.split(ARTIST_SEPARATOR)[0]

    @property
    def primary_artist_id(self) -> Optional[str]:
        return self.artist_ids[0] if self.artist_ids else None

@dataclass(frozen=True)
class Profile:
    """Authenticated user's profile"""
    display_name: Optional[str]
    user_id: Optional[str] = None

@dataclass(frozen=True)
class Summary:
    """Statistics derived from one top tracks fetch"""
    avg_popularity: float
    explicit_count: int
    avg_duration: float
    track_count: int
    variety_score: float
    shortest_track: Optional[Track]
    longest_track: Optional[Track]
    genre_counts: Dict[str, int] = field(default_factory=dict)
    artist_counts: Dict[str, int] = field(default_factory=dict)
    decade_counts: Dict[str, int] = field(default_factory=dict)

@dataclass(frozen=True)
class ListeningReport:
    """Everything the receipt and stats views need for one time range"""
    username: str
    time_range: str
    top_tracks: List[Track]
    top_artists: List[str]
    top_genres: List[str]
    summary: Summary
    generated_at: datetime
    genres_degraded: bool = False

    def receipt_tracks(self, length: int) -> List[Track]:
        """Tracks shown on a receipt of the given length, no refetch needed"""
        return self.top_tracks[:max(0, length)]
