"""
Usage statistics for the chat app dashboard
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.utils.datetime_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def window_start(days: int, today: Optional[date] = None) -> datetime:
    """UTC midnight of the first day of a `days`-long window ending today"""
    today = today or utcnow().date()
    first = today - timedelta(days=days - 1)
    return as_utc(datetime(first.year, first.month, first.day))


def daily_counts(timestamps: Iterable[datetime], days: int, today: Optional[date] = None) -> List[Dict]:
    """
    Bucket timestamps per UTC day over the last `days` days

    Days without events are included with a zero count.

    Returns:
        [{"date": "YYYY-MM-DD", "count": int}], oldest first, `days` entries
    """
    today = today or utcnow().date()
    counts = Counter(as_utc(ts).date().isoformat() for ts in timestamps)

    return [
        {"date": day, "count": counts.get(day, 0)}
        for day in (
            (today - timedelta(days=offset)).isoformat()
            for offset in range(days - 1, -1, -1)
        )
    ]


class StatsService:
    """Per-user statistics"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_stats(self, user_id: UUID, today: Optional[date] = None) -> Dict:
        """
        Dashboard stats for a user

        Returns:
            {total_sessions, total_messages, last_7_days, recent_sessions}
        """
        total_sessions = self.db.query(func.count(Chat.id)).filter(
            Chat.user_id == user_id
        ).scalar() or 0

        total_messages = self.db.query(func.count(Message.id)).join(
            Chat, Message.chat_id == Chat.id
        ).filter(Chat.user_id == user_id).scalar() or 0

        since = window_start(7, today)
        timestamps = [
            row[0] for row in self.db.query(Message.created_at).join(
                Chat, Message.chat_id == Chat.id
            ).filter(
                Chat.user_id == user_id,
                Message.created_at >= since
            ).all()
        ]

        last_7_days = [
            {"date": point["date"], "messages_count": point["count"]}
            for point in daily_counts(timestamps, 7, today)
        ]

        recent_sessions = self.db.query(Chat).filter(
            Chat.user_id == user_id
        ).order_by(Chat.created_at.desc()).limit(5).all()

        return {
            "total_sessions": total_sessions,
            "total_messages": total_messages,
            "last_7_days": last_7_days,
            "recent_sessions": [
                {"id": chat.id, "title": chat.title, "created_at": chat.created_at}
                for chat in recent_sessions
            ],
        }
