from .original_url import OriginalURL
from .link import Link
from .visit import Visit

__all__ = ["OriginalURL", "Link", "Visit"]
