import html
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..core.shortener import LinkAllocator, find_link, resolve_link
from ..database import get_db
from ..schemas.analytics import LinkStats
from ..schemas.link import LinkCreate, LinkResponse
from ..services.analytics import REGIONS, get_link_stats
from ..services.visits import VisitRecorder
from ..utils.validators import get_client_ip
from .deps import get_allocator, get_session_factory, get_visit_recorder

logger = logging.getLogger(__name__)

router = APIRouter()


def get_404_page(identifier: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html><head><meta charset="UTF-8"><title>Link not found</title></head>
    <body style="font-family: Arial; text-align: center; padding: 50px;">
        <h1>404 - Link not found</h1>
        <p>The short link <code>{html.escape(identifier)}</code> is not defined yet.</p>
        <a href="/">Shorten a URL</a>
    </body></html>
    """


def short_url(identifier: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/{identifier}"


@router.post("/shorten", response_model=LinkResponse, status_code=201)
def create_short_link(
    link_data: LinkCreate,
    db: Session = Depends(get_db),
    allocator: LinkAllocator = Depends(get_allocator)
):
    """
    Create a short link.

    Shortening an already shortened URL returns its existing link.
    """
    # An empty custom field means no custom label
    custom = link_data.custom_alias or None
    link = allocator.shorten(db, link_data.url, custom)

    return {
        "identifier": link.identifier,
        "short_url": short_url(link.identifier),
        "original_url": link.original,
        "created_at": link.created_at,
    }


@router.get("/info/{identifier}", response_model=LinkStats)
@router.get("/info/{identifier}/{num_days}", response_model=LinkStats)
@router.get("/info/{identifier}/{num_days}/{region}", response_model=LinkStats)
def get_link_info(
    identifier: str,
    num_days: Optional[int] = None,
    region: str = "world",
    db: Session = Depends(get_db)
):
    """
    Link information with visits per day and per country.
    """
    link = resolve_link(db, identifier)

    if num_days is None:
        num_days = settings.DEFAULT_STATS_DAYS
    if not 0 <= num_days <= settings.MAX_STATS_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Number of days must be between 0 and {settings.MAX_STATS_DAYS}"
        )
    if region not in REGIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown region '{region}', expected one of: {', '.join(REGIONS)}"
        )

    return get_link_stats(db, link, num_days, region)


def redirect_to_url(
    identifier: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    recorder: VisitRecorder = Depends(get_visit_recorder),
    session_factory=Depends(get_session_factory)
):
    """
    Redirect to the original URL from a short identifier.

    Records the visit; its country is looked up after the response when
    enrichment runs in the background.
    """
    link = find_link(db, identifier)

    if not link:
        logger.info(f"Unknown short link requested: {identifier}")
        return HTMLResponse(content=get_404_page(identifier), status_code=404)

    in_background = settings.GEO_ENRICH_IN_BACKGROUND
    visit = recorder.record_visit(
        db, link, get_client_ip(request), enrich=not in_background
    )
    if in_background:
        background_tasks.add_task(
            recorder.enrich_visit_country, visit.id, session_factory
        )

    return RedirectResponse(url=link.original, status_code=301)
