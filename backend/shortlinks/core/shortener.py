import logging
import string
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import (
    AllocationExhausted,
    InvalidLabel,
    InvalidURL,
    LabelForbidden,
    LabelTaken,
    LinkNotFound,
    ShortLinksError,
    StorageError,
)
from ..models import Link, OriginalURL
from ..utils.validators import RESERVED_LABELS, is_valid_label, is_valid_url
from .profanity import ProfanityFilter

logger = logging.getLogger(__name__)

# Lowercase base36 digits, the alphabet of generated identifiers
CHARSET = string.digits + string.ascii_lowercase


def encode_base36(number: int) -> str:
    """
    Encode a non-negative integer with the digits 0-9a-z.

    >>> encode_base36(35)
    'z'
    >>> encode_base36(36)
    '10'
    """
    if number < 0:
        raise ValueError("Only non-negative integers can be encoded")
    if number == 0:
        return CHARSET[0]

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(CHARSET[remainder])
    return "".join(reversed(digits))


def find_link(db: Session, identifier: str) -> Optional[Link]:
    """Exact, case-sensitive lookup of a link by identifier"""
    return db.query(Link).filter(Link.identifier == identifier).first()


def resolve_link(db: Session, identifier: str) -> Link:
    """
    Return the link with this identifier.

    Raises:
        LinkNotFound: when no link uses the identifier
    """
    link = find_link(db, identifier)
    if link is None:
        raise LinkNotFound(f"Short link '{identifier}' is not defined")
    return link


class LinkAllocator:
    """
    Maps original URLs to short links.

    Shortening is idempotent per original URL. Without a custom label the
    identifier is the base36 form of the OriginalURL row id; ids whose code
    is taken or profane are discarded and a fresh row is drawn.
    """

    def __init__(self, profanity: ProfanityFilter, max_attempts: int = 20):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.profanity = profanity
        self.max_attempts = max_attempts

    def shorten(self, db: Session, original: str, custom: Optional[str] = None) -> Link:
        """
        Return the link for ``original``, creating it when needed.

        Args:
            db: Database session; committed on success, rolled back on failure
            original: Absolute HTTP or HTTPS URL
            custom: Optional label to use as the identifier

        Raises:
            InvalidURL, InvalidLabel, LabelTaken, LabelForbidden,
            AllocationExhausted, StorageError
        """
        is_valid, error_msg = is_valid_url(original)
        if not is_valid:
            raise InvalidURL(error_msg)

        if custom is not None:
            is_valid, error_msg = is_valid_label(custom)
            if not is_valid:
                raise InvalidLabel(error_msg)

        # A lost race surfaces as an IntegrityError at flush time; the retry
        # then sees the winner's rows.
        for _ in range(self.max_attempts):
            try:
                link = self._lookup_or_create(db, original, custom)
                db.commit()
                return link
            except IntegrityError:
                db.rollback()
                logger.info(f"Concurrent write while shortening {original}, retrying")
            except ShortLinksError:
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Shortening {original} failed: {e}")
                raise StorageError(str(e)) from e

        raise AllocationExhausted(
            f"Could not shorten {original} after {self.max_attempts} attempts"
        )

    def _lookup_or_create(self, db: Session, original: str, custom: Optional[str]) -> Link:
        # Shortening the same URL twice returns the first link
        url = db.query(OriginalURL).filter(OriginalURL.original == original).first()
        if url is not None and url.link is not None:
            return url.link

        if custom is not None:
            return self._claim_label(db, original, custom, url)
        return self._allocate(db, original, url)

    def _claim_label(
        self, db: Session, original: str, custom: str, url: Optional[OriginalURL]
    ) -> Link:
        if find_link(db, custom) is not None:
            raise LabelTaken("Someone has already taken this custom URL, sorry")

        if self.profanity.contains(custom):
            raise LabelForbidden("This custom URL is not allowed because of profanity")

        if url is None:
            url = OriginalURL(original=original)
            db.add(url)
        link = Link(identifier=custom, url=url)
        db.add(link)
        db.flush()

        logger.info(f"Created link {custom} for {original}")
        return link

    def _is_free(self, db: Session, candidate: str) -> bool:
        return (
            candidate not in RESERVED_LABELS
            and not self.profanity.contains(candidate)
            and find_link(db, candidate) is None
        )

    def _allocate(self, db: Session, original: str, url: Optional[OriginalURL]) -> Link:
        # A row left without a link (e.g. by an interrupted writer) is
        # replaced rather than reused, so every candidate comes from a new id.
        if url is not None:
            db.delete(url)
            db.flush()

        for _ in range(self.max_attempts):
            url = OriginalURL(original=original)
            db.add(url)
            db.flush()

            candidate = encode_base36(url.id)
            if self._is_free(db, candidate):
                link = Link(identifier=candidate, url=url)
                db.add(link)
                db.flush()

                logger.info(f"Created link {candidate} for {original}")
                return link

            logger.debug(f"Identifier {candidate} rejected, drawing a new id")
            db.delete(url)
            db.flush()

        raise AllocationExhausted(
            f"No usable identifier for {original} after {self.max_attempts} ids"
        )
