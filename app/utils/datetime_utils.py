"""
日時ユーティリティ
"""
from datetime import datetime, timezone
from typing import Optional


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    タイムゾーン情報のない日時をUTCとして扱う

    SQLiteなどタイムゾーンを保持しないDBから読み出した日時を、
    アプリ側のaware datetimeと比較できるようにする。

    Args:
        value: 対象の日時（Noneも可）

    Returns:
        UTCのaware datetime、または None

    Examples:
        >>> ensure_utc(datetime(2026, 1, 1, 9, 0))
        datetime.datetime(2026, 1, 1, 9, 0, tzinfo=datetime.timezone.utc)
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
