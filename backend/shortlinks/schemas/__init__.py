from .link import LinkCreate, LinkResponse
from .analytics import CountryVisits, DayVisits, LinkStats

__all__ = ["LinkCreate", "LinkResponse", "CountryVisits", "DayVisits", "LinkStats"]
