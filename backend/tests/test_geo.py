import httpx
import pytest

from shortlinks.exceptions import GeoLookupFailed
from shortlinks.utils.geo import GeoResolver, is_private_ip, parse_country

LOOKUP_URL = "http://geo.test/get_xml.php"


def hostip_document(country="US"):
    return f"""<HostipLookupResultSet version="1.0.1" xmlns:gml="http://www.opengis.net/gml"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
 <gml:description>This is the Hostip Lookup Service</gml:description>
 <gml:name>hostip</gml:name>
 <gml:boundedBy><gml:Null>inapplicable</gml:Null></gml:boundedBy>
 <gml:featureMember>
  <Hostip>
   <ip>12.215.42.19</ip>
   <gml:name>Aurora, TX</gml:name>
   <countryName>UNITED STATES</countryName>
   <countryAbbrev>{country}</countryAbbrev>
  </Hostip>
 </gml:featureMember>
</HostipLookupResultSet>
"""


def make_resolver(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeoResolver(LOOKUP_URL, client=client, **kwargs)


class TestParseCountry:

    def test_country_abbreviation(self):
        assert parse_country(hostip_document("SG")) == "SG"

    def test_lowercase_code_is_normalised(self):
        assert parse_country(hostip_document("fr")) == "FR"

    def test_unknown_country_placeholder(self):
        with pytest.raises(GeoLookupFailed):
            parse_country(hostip_document("XX"))

    def test_malformed_document(self):
        with pytest.raises(GeoLookupFailed):
            parse_country("<HostipLookupResultSet><unclosed>")

    def test_missing_field(self):
        with pytest.raises(GeoLookupFailed):
            parse_country("<HostipLookupResultSet><Hostip/></HostipLookupResultSet>")

    def test_not_a_country_code(self):
        with pytest.raises(GeoLookupFailed):
            parse_country(hostip_document("USA"))


class TestGeoResolver:

    def test_resolve_country(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=hostip_document("US"))

        resolver = make_resolver(handler)

        assert resolver.resolve_country("12.215.42.19") == "US"
        assert requests[0].url.params["ip"] == "12.215.42.19"

    def test_successful_lookups_are_cached(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=hostip_document("US"))

        resolver = make_resolver(handler)
        resolver.resolve_country("8.8.8.8")
        resolver.resolve_country("8.8.8.8")

        assert len(requests) == 1

    def test_failures_are_not_cached(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(503)

        resolver = make_resolver(handler)
        for _ in range(2):
            with pytest.raises(GeoLookupFailed):
                resolver.resolve_country("8.8.8.8")

        assert len(requests) == 2

    def test_server_error(self):
        resolver = make_resolver(lambda request: httpx.Response(500))
        with pytest.raises(GeoLookupFailed):
            resolver.resolve_country("8.8.8.8")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GeoLookupFailed, match="timed out"):
            make_resolver(handler).resolve_country("8.8.8.8")

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GeoLookupFailed):
            make_resolver(handler).resolve_country("8.8.8.8")

    def test_private_address_skips_network(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=hostip_document("US"))

        with pytest.raises(GeoLookupFailed):
            make_resolver(handler).resolve_country("192.168.1.10")
        assert requests == []

    def test_unknown_client_skips_network(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=hostip_document("US"))

        with pytest.raises(GeoLookupFailed):
            make_resolver(handler).resolve_country("unknown")
        assert requests == []


@pytest.mark.parametrize("ip, private", [
    ("127.0.0.1", True),
    ("10.1.2.3", True),
    ("172.16.0.1", True),
    ("172.32.0.1", False),
    ("192.168.0.1", True),
    ("::1", True),
    ("", True),
    ("unknown", True),
    ("8.8.8.8", False),
])
def test_is_private_ip(ip, private):
    assert is_private_ip(ip) is private
