import secrets
from datetime import datetime, timedelta
from sqlalchemy import Column, String, DateTime, Text
from productsaas.database.base import Base

class UserSession(Base):
    """
    Server-side record of a signed-in session.
    Access tokens carry the session id, so revoking the row ends the session
    even while the token itself has not expired.
    """
    __tablename__ = "user_sessions"

    session_id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    ip_address = Column(String(45), nullable=True)  # IPv6
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    @classmethod
    def start(cls, user_id: str, lifetime_hours: int, ip_address: str = None, user_agent: str = None):
        now = datetime.utcnow()
        return cls(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
            created_at=now,
            last_seen_at=now,
            expires_at=now + timedelta(hours=lifetime_hours),
        )

    def seen(self):
        self.last_seen_at = datetime.utcnow()

    def extend(self, hours: int):
        self.expires_at = datetime.utcnow() + timedelta(hours=hours)
        self.seen()

    def revoke(self):
        if self.revoked_at is None:
            self.revoked_at = datetime.utcnow()

    def is_valid(self) -> bool:
        return self.revoked_at is None and datetime.utcnow() <= self.expires_at
