from datetime import datetime

from freezegun import freeze_time

from shortlinks.models import Visit
from shortlinks.services.analytics import daily_counts


class TestRecordVisit:

    @freeze_time("2026-03-15 10:30:00")
    def test_records_visit_with_country(self, db, make_link, recorder):
        link = make_link("abc")

        visit = recorder.record_visit(db, link, "1.2.3.4")

        assert visit.id is not None
        assert visit.ip == "1.2.3.4"
        assert visit.country == "US"
        assert visit.created_at == datetime(2026, 3, 15, 10, 30)
        assert visit.link_identifier == "abc"
        assert len(link.visits) == 1

    def test_geolocation_failure_keeps_visit(self, db, make_link, recorder):
        link = make_link("abc")

        visit = recorder.record_visit(db, link, "9.9.9.9")

        db.expire_all()
        stored = db.query(Visit).filter(Visit.id == visit.id).one()
        assert stored.country is None
        assert sum(count for _, count in daily_counts(db, "abc", 0)) == 1

    def test_without_enrichment(self, db, make_link, recorder, resolver):
        link = make_link("abc")

        visit = recorder.record_visit(db, link, "1.2.3.4", enrich=False)

        assert visit.country is None
        assert resolver.calls == []

    def test_visits_accumulate(self, db, make_link, recorder):
        link = make_link("abc")
        for ip in ("1.2.3.4", "5.6.7.8", "9.9.9.9"):
            recorder.record_visit(db, link, ip)

        assert len(link.visits) == 3
        assert {visit.country for visit in link.visits} == {"US", "FR", None}


class TestEnrichVisitCountry:

    def test_enriches_in_own_session(self, db, make_link, recorder, session_factory):
        link = make_link("abc")
        visit = recorder.record_visit(db, link, "5.6.7.8", enrich=False)

        recorder.enrich_visit_country(visit.id, session_factory)

        db.expire_all()
        assert db.query(Visit).filter(Visit.id == visit.id).one().country == "FR"

    def test_lookup_failure_is_swallowed(self, db, make_link, recorder, session_factory):
        link = make_link("abc")
        visit = recorder.record_visit(db, link, "9.9.9.9", enrich=False)

        result = recorder.enrich_visit_country(visit.id, session_factory)

        assert result is not None
        assert result.country is None

    def test_missing_visit(self, recorder, session_factory):
        assert recorder.enrich_visit_country(12345, session_factory) is None
