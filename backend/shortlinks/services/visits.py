import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import GeoLookupFailed, StorageError
from ..models import Link, Visit
from ..utils.dates import utcnow
from ..utils.geo import GeoResolver

logger = logging.getLogger(__name__)


class VisitRecorder:
    """Appends visits to links and fills in their country when it can"""

    def __init__(self, resolver: GeoResolver):
        self.resolver = resolver

    def record_visit(self, db: Session, link: Link, ip: str, enrich: bool = True) -> Visit:
        """
        Persist a visit to ``link`` from ``ip``.

        The visit is committed before any geolocation happens, so it counts
        in the statistics whatever the lookup does. With ``enrich=False`` the
        caller is expected to run ``enrich_visit_country`` later.
        """
        visit = Visit(link=link, ip=ip, created_at=utcnow())
        db.add(visit)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Recording visit to {link.identifier} failed: {e}")
            raise StorageError(str(e)) from e
        db.refresh(visit)

        logger.info(f"Recorded visit {visit.id} to {link.identifier}")

        if enrich:
            self.enrich_visit(db, visit)
        return visit

    def enrich_visit(self, db: Session, visit: Visit) -> Visit:
        """Set the visit's country; a failed lookup leaves it unknown"""
        try:
            visit.country = self.resolver.resolve_country(visit.ip)
        except GeoLookupFailed as e:
            logger.warning(f"No country for visit {visit.id}: {e}")
            return visit

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Saving country for visit {visit.id} failed: {e}")
        return visit

    def enrich_visit_country(
        self, visit_id: int, session_factory: Callable[[], Session]
    ) -> Optional[Visit]:
        """
        Background entry point: enrich a committed visit in its own session.

        Never raises; the redirect that scheduled it has already been answered.
        """
        db = session_factory()
        try:
            visit = db.query(Visit).filter(Visit.id == visit_id).first()
            if visit is None:
                logger.warning(f"Visit {visit_id} disappeared before enrichment")
                return None
            return self.enrich_visit(db, visit)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Enriching visit {visit_id} failed: {e}")
            return None
        finally:
            db.close()
