"""Custom JSON encoding utilities"""
import dataclasses
import json
from datetime import datetime
from typing import Any, Dict

from listening_receipt.aggregation import listener_type, sorted_decades, top_entries, variety_percent
from listening_receipt.models.track import ListeningReport

class DateTimeEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles datetime objects and dataclasses"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)

def json_dumps(obj, **kwargs):
    """Helper function to dump JSON with datetime handling"""
    return json.dumps(obj, cls=DateTimeEncoder, **kwargs)

def report_to_dict(report: ListeningReport, length: int) -> Dict[str, Any]:
    """Report as plain data, with the receipt slice and display rankings added"""
    data = dataclasses.asdict(report)
    summary = report.summary
    data['receipt'] = [dataclasses.asdict(t) for t in report.receipt_tracks(length)]
    data['display'] = {
        'listener_type': listener_type(summary.variety_score),
        'variety_percent': variety_percent(summary.variety_score),
        'top_genres': top_entries(summary.genre_counts, 5),
        'top_artists': top_entries(summary.artist_counts, 5),
        'decades': sorted_decades(summary.decade_counts),
    }
    return data
