import hashlib

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


def url_digest(original: str) -> str:
    """SHA256 hex digest of an original URL, used as its uniqueness key"""
    return hashlib.sha256(original.encode("utf-8")).hexdigest()


class OriginalURL(Base):
    """The long URL behind a short link"""
    __tablename__ = "original_urls"

    # AUTOINCREMENT keeps SQLite from handing out the id of a discarded row again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    original = Column(Text, nullable=False)
    digest = Column(String(64), unique=True, index=True, nullable=False)

    link = relationship("Link", back_populates="url", uselist=False)

    def __init__(self, original: str, **kwargs):
        super().__init__(original=original, digest=url_digest(original), **kwargs)

    def __repr__(self):
        return f"<OriginalURL {self.id} {self.original}>"
