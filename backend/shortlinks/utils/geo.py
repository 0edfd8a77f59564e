import logging
import re
import xml.etree.ElementTree as ET
from functools import lru_cache
from typing import Optional, Union

import httpx

from ..exceptions import GeoLookupFailed
from .validators import UNKNOWN_CLIENT_IP

logger = logging.getLogger(__name__)

# Private IP patterns
PRIVATE_IP_PATTERNS = [
    re.compile(r'^127\.'),  # Loopback
    re.compile(r'^10\.'),  # Class A private
    re.compile(r'^172\.(1[6-9]|2[0-9]|3[0-1])\.'),  # Class B private
    re.compile(r'^192\.168\.'),  # Class C private
    re.compile(r'^169\.254\.'),  # Link-local
    re.compile(r'^::1$'),  # IPv6 loopback
    re.compile(r'^fc00:', re.IGNORECASE),  # IPv6 unique local
    re.compile(r'^fe80:', re.IGNORECASE),  # IPv6 link-local
]

COUNTRY_CODE = re.compile(r'^[A-Z]{2}$')

# hostip answers this for addresses it cannot place
UNKNOWN_COUNTRY = "XX"


def is_private_ip(ip: str) -> bool:
    """Check if IP address is private/local or missing"""
    if not ip or ip == UNKNOWN_CLIENT_IP:
        return True
    for pattern in PRIVATE_IP_PATTERNS:
        if pattern.match(ip):
            return True
    return False


def parse_country(document: Union[str, bytes]) -> str:
    """
    Extract the country abbreviation from a hostip XML document.

    The code sits at featureMember/Hostip/countryAbbrev, with featureMember
    in the GML namespace.

    Raises:
        GeoLookupFailed: on malformed XML, a missing field or an unknown country
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise GeoLookupFailed(f"Malformed geolocation response: {e}") from e

    element = root.find(".//{*}featureMember/{*}Hostip/{*}countryAbbrev")
    if element is None or not element.text:
        raise GeoLookupFailed("Geolocation response has no country abbreviation")

    country = element.text.strip().upper()
    if country == UNKNOWN_COUNTRY or not COUNTRY_CODE.match(country):
        raise GeoLookupFailed(f"Geolocation service has no country for this address ({country})")
    return country


class GeoResolver:
    """
    Resolves IP addresses to ISO 3166-1 alpha-2 country codes.

    Successful lookups are kept in an LRU cache; failures are not cached.
    """

    def __init__(
        self,
        lookup_url: str,
        timeout: float = 2.0,
        cache_size: int = 10000,
        client: Optional[httpx.Client] = None,
    ):
        self.lookup_url = lookup_url
        self.timeout = timeout
        self._client = client
        self._cached_lookup = lru_cache(maxsize=cache_size)(self._lookup)

    def resolve_country(self, ip: str) -> str:
        """
        Return the country code for ``ip``.

        Raises:
            GeoLookupFailed: on network errors, timeouts, bad responses or
                addresses that cannot be placed
        """
        if is_private_ip(ip):
            raise GeoLookupFailed(f"{ip} is a private address")
        return self._cached_lookup(ip)

    def _lookup(self, ip: str) -> str:
        try:
            if self._client is not None:
                response = self._client.get(
                    self.lookup_url, params={"ip": ip}, timeout=self.timeout
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(self.lookup_url, params={"ip": ip})
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise GeoLookupFailed(f"Geolocation lookup for {ip} timed out") from e
        except httpx.HTTPError as e:
            raise GeoLookupFailed(f"Geolocation lookup for {ip} failed: {e}") from e

        country = parse_country(response.content)
        logger.debug(f"Resolved {ip} to {country}")
        return country
