"""
Admin Service - back-office queries

Admin users:
- Paginated listing with search (email or name) and role/status filters
- Create / update / delete with unique email

Site settings:
- Singleton row (id=1), created with defaults on first read

AI app directory and usage:
- Paginated chat app users with search and type filter
- Per-user usage summary and recent chats
- Usage per user, dashboard metrics, daily message trend
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from chatapp.core.security import hash_password
from chatapp.models.admin import AdminUser, AdminSettings
from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.models.user import User
from chatapp.services.stats_service import daily_counts, window_start
from chatapp.utils.datetime_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def _latest(*values: Optional[datetime]) -> Optional[datetime]:
    present = [as_utc(v) for v in values if v is not None]
    return max(present) if present else None


def paginate(query, page: int, limit: int) -> Tuple[List[Any], int, int]:
    """
    Apply page/limit to a query

    Returns:
        (items, total, total_pages)
    """
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0
    return items, total, total_pages


class AdminService:
    """Back-office data access"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Admin users
    # ------------------------------------------------------------------

    def list_admin_users(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[AdminUser], int, int]:
        query = self.db.query(AdminUser)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(AdminUser.email.ilike(pattern), AdminUser.name.ilike(pattern)))
        if role:
            query = query.filter(AdminUser.role == role)
        if status:
            query = query.filter(AdminUser.status == status)

        return paginate(query.order_by(AdminUser.created_at.desc()), page, limit)

    def get_admin_user(self, admin_id: UUID) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(AdminUser.id == admin_id).first()

    def get_admin_user_by_email(self, email: str) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(func.lower(AdminUser.email) == email.lower()).first()

    def create_admin_user(
        self,
        email: str,
        name: Optional[str] = None,
        role: str = "user",
        status: str = "active",
        password: Optional[str] = None,
    ) -> AdminUser:
        admin = AdminUser(
            email=email,
            name=name,
            role=role,
            status=status,
            password_hash=hash_password(password) if password else None,
        )
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        logger.info(f"Created admin user {admin.id} ({role})")
        return admin

    def update_admin_user(self, admin: AdminUser, changes: Dict[str, Any]) -> AdminUser:
        password = changes.pop("password", None)
        for field, value in changes.items():
            setattr(admin, field, value)
        if password:
            admin.password_hash = hash_password(password)
        admin.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(admin)
        logger.info(f"Updated admin user {admin.id}: {sorted(changes)}")
        return admin

    def delete_admin_user(self, admin: AdminUser) -> None:
        self.db.delete(admin)
        self.db.commit()
        logger.info(f"Deleted admin user {admin.id}")

    # ------------------------------------------------------------------
    # Site settings
    # ------------------------------------------------------------------

    def get_settings(self) -> AdminSettings:
        """Singleton settings row, created with defaults if missing"""
        settings_row = self.db.query(AdminSettings).filter(AdminSettings.id == 1).first()
        if settings_row is None:
            settings_row = AdminSettings(id=1)
            self.db.add(settings_row)
            self.db.commit()
            self.db.refresh(settings_row)
            logger.info("Created default admin settings")
        return settings_row

    def update_settings(self, changes: Dict[str, Any]) -> AdminSettings:
        settings_row = self.get_settings()
        for field, value in changes.items():
            setattr(settings_row, field, value)
        settings_row.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(settings_row)
        return settings_row

    # ------------------------------------------------------------------
    # AI app users
    # ------------------------------------------------------------------

    def list_app_users(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        user_type: Optional[str] = None,
    ) -> Tuple[List[User], int, int]:
        query = self.db.query(User)

        if search:
            query = query.filter(User.email.ilike(f"%{search.strip()}%"))
        if user_type:
            query = query.filter(User.type == user_type)

        return paginate(query.order_by(User.created_at.desc()), page, limit)

    def get_app_user(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def toggle_app_user_status(self, user: User) -> User:
        """Flip active <-> banned"""
        user.status = "banned" if user.status == "active" else "active"
        user.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"App user {user.id} is now {user.status}")
        return user

    def get_usage_summary(self, user_id: UUID) -> Dict[str, Any]:
        """
        Activity totals for one app user

        lastActivity is the latest chat or message timestamp.
        """
        chat_count, last_chat = self.db.query(
            func.count(Chat.id), func.max(Chat.created_at)
        ).filter(Chat.user_id == user_id).one()

        message_count, last_message = self.db.query(
            func.count(Message.id), func.max(Message.created_at)
        ).join(Chat, Message.chat_id == Chat.id).filter(Chat.user_id == user_id).one()

        return {
            "total_chats": chat_count or 0,
            "total_messages": message_count or 0,
            "last_activity": _latest(last_chat, last_message),
        }

    def get_recent_chats(self, user_id: UUID, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent chats of a user with their message counts"""
        chats = self.db.query(Chat).filter(
            Chat.user_id == user_id
        ).order_by(Chat.created_at.desc()).limit(limit).all()

        if not chats:
            return []

        counts = dict(
            self.db.query(Message.chat_id, func.count(Message.id)).filter(
                Message.chat_id.in_([c.id for c in chats])
            ).group_by(Message.chat_id).all()
        )

        return [
            {
                "id": chat.id,
                "title": chat.title,
                "visibility": chat.visibility,
                "created_at": chat.created_at,
                "message_count": counts.get(chat.id, 0),
            }
            for chat in chats
        ]

    # ------------------------------------------------------------------
    # Usage and metrics
    # ------------------------------------------------------------------

    def get_usage_stats(self) -> List[Dict[str, Any]]:
        """
        Usage per app user, most recently active first

        Only users with at least one chat are listed.
        """
        chat_stats = self.db.query(
            Chat.user_id, func.count(Chat.id), func.max(Chat.created_at)
        ).group_by(Chat.user_id).all()

        message_stats = {
            user_id: (message_count, last_message)
            for user_id, message_count, last_message in self.db.query(
                Chat.user_id, func.count(Message.id), func.max(Message.created_at)
            ).join(Message, Message.chat_id == Chat.id).group_by(Chat.user_id).all()
        }

        if not chat_stats:
            return []

        emails = dict(
            self.db.query(User.id, User.email).filter(
                User.id.in_([row[0] for row in chat_stats])
            ).all()
        )

        usage = []
        for user_id, chat_count, last_chat in chat_stats:
            message_count, last_message = message_stats.get(user_id, (0, None))
            usage.append({
                "user_id": user_id,
                "email": emails.get(user_id, str(user_id)),
                "total_chats": chat_count,
                "total_messages": message_count,
                "last_activity": _latest(last_chat, last_message),
            })

        epoch = datetime.min.replace(tzinfo=utcnow().tzinfo)
        usage.sort(key=lambda row: row["last_activity"] or epoch, reverse=True)
        return usage

    def get_dashboard_metrics(self) -> Dict[str, int]:
        """Totals plus users with a chat or message in the last 7 days"""
        since = utcnow() - timedelta(days=7)

        active_from_messages = {
            row[0] for row in self.db.query(Chat.user_id).join(
                Message, Message.chat_id == Chat.id
            ).filter(Message.created_at >= since).distinct().all()
        }
        active_from_chats = {
            row[0] for row in self.db.query(Chat.user_id).filter(
                Chat.created_at >= since
            ).distinct().all()
        }

        return {
            "total_users": self.db.query(func.count(User.id)).scalar() or 0,
            "active_users_last_7_days": len(active_from_messages | active_from_chats),
            "total_chats": self.db.query(func.count(Chat.id)).scalar() or 0,
            "total_messages": self.db.query(func.count(Message.id)).scalar() or 0,
        }

    def get_message_trend(self, days: int = 30) -> List[Dict[str, Any]]:
        """Messages per day for the last `days` days (ending today), zero-filled"""
        since = window_start(days)
        timestamps = [
            row[0] for row in self.db.query(Message.created_at).filter(
                Message.created_at >= since
            ).all()
        ]
        return daily_counts(timestamps, days)
