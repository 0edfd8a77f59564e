from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlencode

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Link, Visit
from ..utils.dates import utc_today

DailySeries = List[Tuple[date, int]]
CountrySeries = List[Tuple[Optional[str], int]]

# Map zoom levels understood by the chart service
REGIONS = ("world", "usa", "asia", "europe", "africa", "middle_east", "south_america")

# Headroom above the largest bar
SCALE_MARGIN = 10

UNKNOWN_COUNTRY_LABEL = "Unknown"


def _as_date(value) -> date:
    # SQLite's date() yields 'YYYY-MM-DD' strings, other backends yield dates
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def daily_counts(
    db: Session, identifier: str, num_days: int, today: Optional[date] = None
) -> DailySeries:
    """
    Visits per calendar day for a link, most recent day first.

    Covers ``today - num_days`` through ``today`` inclusive; every day in
    that range is present, with 0 when nothing was recorded.
    """
    if num_days < 0:
        raise ValueError("num_days cannot be negative")

    today = today or utc_today()
    start = today - timedelta(days=num_days)
    day = func.date(Visit.created_at)

    results = db.query(
        day.label('date'),
        func.count(Visit.id).label('visits')
    ).filter(
        Visit.link_identifier == identifier,
        Visit.created_at >= datetime.combine(start, time.min),
        Visit.created_at < datetime.combine(today + timedelta(days=1), time.min)
    ).group_by(
        day
    ).all()

    counts = {_as_date(row.date): row.visits for row in results}

    return [
        (day_, counts.get(day_, 0))
        for day_ in (today - timedelta(days=offset) for offset in range(num_days + 1))
    ]


def country_counts(db: Session, identifier: str) -> CountrySeries:
    """
    Visits per country for a link.

    Visits without a resolved country are grouped under ``None``, listed
    after the known countries.
    """
    results = db.query(
        Visit.country,
        func.count(Visit.id).label('visits')
    ).filter(
        Visit.link_identifier == identifier
    ).group_by(
        Visit.country
    ).all()

    known = sorted(
        ((row.country, row.visits) for row in results if row.country),
        key=lambda item: (-item[1], item[0])
    )
    unknown = [(None, row.visits) for row in results if not row.country]
    return known + unknown


def chart_url(params: Dict[str, str]) -> str:
    return f"{settings.CHART_API_URL}?{urlencode(params, safe=',|:/')}"


def chart_scale(counts: List[int]) -> int:
    """Upper bound of a chart axis; an empty series still gets a valid scale"""
    return max(counts, default=0) + SCALE_MARGIN


def render_daily_chart(series: DailySeries) -> str:
    """Vertical bar chart of visits per day, labelled day/month"""
    data = [count for _, count in series]
    labels = [f"{day.day}/{day.month}" for day, _ in series]

    return chart_url({
        "chs": "820x180",
        "cht": "bvs",
        "chxt": "x",
        "chco": "a4b3f4",
        "chm": "N,000000,0,-1,11",
        "chxl": "0:|" + "|".join(labels),
        "chds": f"0,{chart_scale(data)}",
        "chd": "t:" + ",".join(str(count) for count in data),
    })


def render_country_chart(series: CountrySeries, region: str = "world") -> Dict[str, str]:
    """
    Map and horizontal bar chart of visits per country.

    Returns a dict with ``map`` and ``bar`` chart URLs. The map only shows
    known countries; the bar chart lists unknown visits as "Unknown".
    """
    if region not in REGIONS:
        raise ValueError(f"Unknown map region '{region}'")

    known = [(country, count) for country, count in series if country]
    labels = [country or UNKNOWN_COUNTRY_LABEL for country, _ in series]
    counts = [count for _, count in series]
    scale = chart_scale(counts)

    map_url = chart_url({
        "chs": "440x220",
        "cht": "t",
        "chtm": region,
        "chco": "FFFFFF,a4b3f4,0000FF",
        "chld": "".join(country for country, _ in known),
        "chd": "t:" + ",".join(str(count) for _, count in known),
    })

    # Horizontal bar charts list their y axis bottom-up
    bar_url = chart_url({
        "chs": "320x240",
        "cht": "bhs",
        "chco": "a4b3f4",
        "chm": "N,000000,0,-1,11",
        "chbh": "a",
        "chds": f"0,{scale}",
        "chd": "t:" + ",".join(str(count) for count in counts),
        "chxt": "x,y",
        "chxr": f"0,0,{scale}",
        "chxl": "1:|" + "|".join(reversed(labels)),
    })

    return {"map": map_url, "bar": bar_url}


def get_link_stats(db: Session, link: Link, num_days: int, region: str = "world") -> dict:
    """Everything the link information page shows"""
    by_day = daily_counts(db, link.identifier, num_days)
    by_country = country_counts(db, link.identifier)
    country_charts = render_country_chart(by_country, region)

    total_visits = db.query(func.count(Visit.id)).filter(
        Visit.link_identifier == link.identifier
    ).scalar() or 0

    return {
        "identifier": link.identifier,
        "original_url": link.original,
        "short_url": f"{settings.BASE_URL.rstrip('/')}/{link.identifier}",
        "created_at": link.created_at,
        "total_visits": total_visits,
        "num_days": num_days,
        "region": region,
        "visits_by_day": [
            {"date": day.isoformat(), "visits": count} for day, count in by_day
        ],
        "visits_by_country": [
            {"country_code": country, "visits": count} for country, count in by_country
        ],
        "daily_chart_url": render_daily_chart(by_day),
        "country_map_url": country_charts["map"],
        "country_bar_url": country_charts["bar"],
    }
