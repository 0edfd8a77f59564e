from functools import lru_cache

from fastapi import Depends

from ..config import settings
from ..core.profanity import ProfanityFilter
from ..core.shortener import LinkAllocator
from ..database import SessionLocal
from ..services.visits import VisitRecorder
from ..utils.geo import GeoResolver


@lru_cache()
def get_profanity_filter() -> ProfanityFilter:
    """Word list is read once per process"""
    return ProfanityFilter.load(settings.PROFANITY_WORDS_FILE)


def get_allocator(
    profanity: ProfanityFilter = Depends(get_profanity_filter)
) -> LinkAllocator:
    return LinkAllocator(profanity, max_attempts=settings.MAX_ALLOCATION_ATTEMPTS)


@lru_cache()
def get_geo_resolver() -> GeoResolver:
    return GeoResolver(
        settings.GEO_LOOKUP_URL,
        timeout=settings.GEO_LOOKUP_TIMEOUT,
        cache_size=settings.GEO_CACHE_SIZE,
    )


def get_visit_recorder(
    resolver: GeoResolver = Depends(get_geo_resolver)
) -> VisitRecorder:
    return VisitRecorder(resolver)


def get_session_factory():
    """Sessions for work that outlives the request, like background enrichment"""
    return SessionLocal
