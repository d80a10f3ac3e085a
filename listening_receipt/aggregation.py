"""Listening summary aggregation over mapped top tracks"""
import math
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from listening_receipt.models.track import Summary, Track

YEAR_PREFIX = re.compile(r"^(\d{4})")

# Shown instead of real genres when nothing could be resolved
FALLBACK_GENRES = ["Pop", "Music"]
NO_GENRE_LABEL = "Eclectic"

class SummaryCalculator:
    """Calculates the listening summary for one fetch. Pure, no I/O."""

    def summarize(self, tracks: Sequence[Track], genre_counts: Optional[Mapping[str, int]] = None) -> Summary:
        """Fold tracks and genre counts into a Summary"""
        tracks = list(tracks)
        shortest, longest = self.calculate_duration_extremes(tracks)
        return Summary(
            avg_popularity=self.calculate_average(t.popularity for t in tracks),
            explicit_count=sum(1 for t in tracks if t.explicit),
            avg_duration=self.calculate_average(t.duration_ms for t in tracks),
            track_count=len(tracks),
            variety_score=self.calculate_variety_score(tracks),
            shortest_track=shortest,
            longest_track=longest,
            genre_counts=dict(genre_counts or {}),
            artist_counts=self.count_artists(tracks),
            decade_counts=self.count_decades(tracks),
        )

    def calculate_average(self, values) -> float:
        values = list(values)
        if not values:
            return 0.0
        return sum(values) / len(values)

    def calculate_variety_score(self, tracks: Sequence[Track]) -> float:
        """
        Distinct primary artists divided by track count

        Close to 1 = Explorer (lots of different artists)
        Close to 0 = Loyalist (the same few artists)
        """
        if not tracks:
            return 0.0
        return len({t.primary_artist for t in tracks}) / len(tracks)

    def calculate_duration_extremes(self, tracks: Sequence[Track]) -> Tuple[Optional[Track], Optional[Track]]:
        """
        Shortest and longest track.

        sorted() is stable: among equal durations the shortest is the first in
        fetch order and the longest is the last in fetch order.
        """
        if not tracks:
            return None, None
        by_duration = sorted(tracks, key=lambda t: t.duration_ms)
        return by_duration[0], by_duration[-1]

    def count_artists(self, tracks: Sequence[Track]) -> Dict[str, int]:
        """Count tracks per primary artist; featured performers are not counted"""
        counts: Dict[str, int] = {}
        for track in tracks:
            counts[track.primary_artist] = counts.get(track.primary_artist, 0) + 1
        return counts

    def count_decades(self, tracks: Sequence[Track]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for track in tracks:
            label = decade_label(track.release_date)
            if label:
                counts[label] = counts.get(label, 0) + 1
        return counts


def decade_label(release_date: Optional[str]) -> Optional[str]:
    """'1999-03-01' -> '1990s'. None for missing or unparsable dates."""
    if not release_date or not isinstance(release_date, str):
        return None
    match = YEAR_PREFIX.match(release_date.strip())
    if not match:
        return None
    year = int(match.group(1))
    return f"{year // 10 * 10}s"

def summarize(tracks: Sequence[Track], genre_counts: Optional[Mapping[str, int]] = None) -> Summary:
    return SummaryCalculator().summarize(tracks, genre_counts)

def top_entries(counts: Mapping[str, int], n: int = 5) -> List[Tuple[str, int]]:
    """Highest counts first; equal counts keep insertion order"""
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:n]

def top_genres(genre_counts: Mapping[str, int], n: int = 3, degraded: bool = False) -> List[str]:
    """
    Genre labels for display.

    Falls back to placeholder labels when there is no genre data; the
    placeholders never enter the frequency table.
    """
    labels = [genre for genre, _ in top_entries(genre_counts, n)]
    if labels:
        return labels
    return list(FALLBACK_GENRES) if degraded else [NO_GENRE_LABEL]

def top_artists(tracks: Sequence[Track]) -> List[str]:
    """Distinct primary artists in fetch order"""
    return list(dict.fromkeys(t.primary_artist for t in tracks))

def sorted_decades(decade_counts: Mapping[str, int]) -> List[Tuple[str, int]]:
    return sorted(decade_counts.items())

def variety_percent(variety_score: float) -> int:
    """Variety score as a whole percentage, halves rounded up"""
    return math.floor(variety_score * 100 + 0.5)

def listener_type(variety_score: float) -> str:
    """
    Label for the variety score

        > 80% distinct artists = EXPLORER
        > 50% = BALANCED
        otherwise LOYALIST
    """
    percent = variety_percent(variety_score)
    if percent > 80:
        return "EXPLORER"
    elif percent > 50:
        return "BALANCED"
    return "LOYALIST"
