from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.dates import utcnow


class Link(Base):
    """Short link model"""
    __tablename__ = "links"

    identifier = Column(String(64), primary_key=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    original_url_id = Column(
        Integer, ForeignKey("original_urls.id"), unique=True, nullable=False
    )

    url = relationship("OriginalURL", back_populates="link")
    visits = relationship(
        "Visit", back_populates="link", order_by="Visit.created_at"
    )

    @property
    def original(self) -> str:
        return self.url.original

    def __repr__(self):
        return f"<Link {self.identifier} -> {self.url.original if self.url else None}>"
