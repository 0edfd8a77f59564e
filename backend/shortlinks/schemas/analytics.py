from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class DayVisits(BaseModel):
    """Visit count for one calendar day"""
    date: str  # ISO date
    visits: int


class CountryVisits(BaseModel):
    """Visit count for one country"""
    country_code: Optional[str]  # None for visits with no resolved country
    visits: int


class LinkStats(BaseModel):
    """Link information with visit statistics and chart URLs"""
    identifier: str
    original_url: str
    short_url: str
    created_at: datetime
    total_visits: int
    num_days: int
    region: str
    visits_by_day: List[DayVisits]
    visits_by_country: List[CountryVisits]
    daily_chart_url: str
    country_map_url: str
    country_bar_url: str
