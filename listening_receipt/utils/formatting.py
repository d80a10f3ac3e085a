"""Text formatting for receipts"""
from datetime import datetime


def format_duration(ms: float) -> str:
    """Milliseconds as m:ss"""
    minutes = int(ms // 60000)
    seconds = int((ms % 60000) / 1000 + 0.5)
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"


def format_receipt_date(moment: datetime) -> str:
    """e.g. 'SUN 10/18/26'"""
    return f"{moment.strftime('%a')} {moment.month}/{moment.day}/{moment.strftime('%y')}".upper()
