from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Integer, String, BigInteger
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class SiteDB(Base):
    __tablename__ = "user_sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    url = Column(String, nullable=False)
    files_count = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    status = Column(String, nullable=False, default="active", index=True)
