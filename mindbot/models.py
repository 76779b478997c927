"""SQLAlchemy ORM models."""
from sqlalchemy import BigInteger, Column, Integer, String

from .database import Base


class RateLimitEntry(Base):
    """Per-user daily quota record. reset_time is epoch milliseconds (UTC)."""

    __tablename__ = "rate_limits"

    user_id = Column(String(64), primary_key=True)
    message_count = Column(Integer, nullable=False, default=0)
    reset_time = Column(BigInteger, nullable=False)
    daily_limit = Column(Integer, nullable=False)
