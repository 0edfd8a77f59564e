from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.dates import utcnow


class Visit(Base):
    """One redirect through a short link"""
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    ip = Column(String(45), nullable=False)  # IPv4 or IPv6
    country = Column(String(2), nullable=True)  # ISO 3166-1 alpha-2, NULL when unknown
    link_identifier = Column(
        String(64), ForeignKey("links.identifier"), nullable=False
    )

    link = relationship("Link", back_populates="visits")

    __table_args__ = (
        Index("idx_visits_link_created", "link_identifier", "created_at"),
    )

    def __repr__(self):
        return f"<Visit {self.id} for link {self.link_identifier}>"
