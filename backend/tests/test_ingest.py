"""
Tests for document registration, report ingestion and upload gating.
"""
from datetime import datetime, timedelta, timezone

import pytest

from credit_ingest.models.db_models import ReportDB
from credit_ingest.models.ssot import ParsedDocument
from credit_ingest.services.errors import DocumentNotFoundError, NoMappingsError
from credit_ingest.services.fingerprint import compute_report_fingerprint
from credit_ingest.services.ingest import ingest_document, register_document
from credit_ingest.services.mapping_registry import MappingRegistry
from credit_ingest.services.upload_gating import find_duplicates, find_newer_upload

T0 = datetime(2024, 1, 1, 12, 0, 0)

JANE = {
    "firstName": "Jane",
    "lastName": "Doe",
    "CREDIT_LIABILITY": [{"CreditLiabilityCreditorName": "Bank A"}],
}


def register(db, parsed_data, user_id=None, source_type="EXPERIAN", at=T0, filename="report.json"):
    document = ParsedDocument(parsed_data=parsed_data, source_type=source_type, uploaded_at=at, user_id=user_id)
    return register_document(db, document, filename=filename)


@pytest.fixture
def experian_mappings(db):
    registry = MappingRegistry(db)
    registry.upsert_canonical_field("accountNumber", "string")
    registry.upsert_canonical_field("balance", "decimal")
    registry.upsert_canonical_field("openedDate", "date")
    registry.upsert_mappings("EXPERIAN", [
        {"sourceField": "acct_num", "targetField": "accountNumber"},
        {"sourceField": "balance", "targetField": "balance"},
        {"sourceField": "opened", "targetField": "openedDate"},
    ])
    return registry


# =============================================================================
# TEST: REGISTRATION
# =============================================================================

class TestRegisterDocument:

    def test_fingerprint_computed_on_upload(self, db):
        row = register(db, JANE)
        assert row.report_fingerprint == compute_report_fingerprint(JANE)
        assert row.report_fingerprint.startswith("fp_")

    def test_caller_document_left_untouched(self, db):
        document = ParsedDocument(parsed_data=JANE, source_type="EXPERIAN")
        row = register_document(db, document, filename="jane.json")
        assert row.report_fingerprint.startswith("fp_")
        assert document.report_fingerprint is None

    def test_default_upload_time_is_naive_utc(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        document = ParsedDocument(parsed_data=JANE, source_type="EXPERIAN")
        assert document.uploaded_at.tzinfo is None
        assert before <= document.uploaded_at <= datetime.now(timezone.utc).replace(tzinfo=None)

    def test_supplied_fingerprint_kept(self, db):
        document = ParsedDocument(parsed_data=JANE, source_type="EXPERIAN", report_fingerprint="fp_legacy")
        row = register_document(db, document, filename="legacy.json")
        assert row.report_fingerprint == "fp_legacy"

    def test_no_signal_gives_empty_fingerprint(self, db):
        row = register(db, {"kind": "csv"})
        assert row.report_fingerprint == ""


# =============================================================================
# TEST: INGESTION
# =============================================================================

class TestIngestDocument:

    def test_canonical_report_persisted(self, db, experian_mappings):
        doc = register(db, {"acct_num": "ABC123", "balance": "1,200", "opened": "2019-06-01", "extra": 1})
        report, canonical = ingest_document(db, doc.id)

        assert canonical == {
            "accountNumber": "ABC123",
            "balance": 1200,
            "openedDate": "2019-06-01T00:00:00",
        }
        stored = db.query(ReportDB).filter(ReportDB.id == report.id).one()
        assert stored.canonical_data == canonical
        assert stored.uploaded_document_id == doc.id
        assert stored.source_type == "EXPERIAN"
        assert stored.raw_payload["extra"] == 1

    def test_bad_fields_skipped(self, db, experian_mappings):
        doc = register(db, {"acct_num": "ABC123", "balance": "unknown", "opened": "someday"})
        _, canonical = ingest_document(db, doc.id)
        assert canonical == {"accountNumber": "ABC123"}

    def test_keys_are_canonical_field_names(self, db, experian_mappings):
        doc = register(db, {"acct_num": "A", "balance": 5, "opened": "2020-01-01"})
        _, canonical = ingest_document(db, doc.id)
        known = {f.name for f in experian_mappings.list_canonical_fields()}
        assert set(canonical) <= known

    def test_each_ingest_creates_a_report(self, db, experian_mappings):
        doc = register(db, {"acct_num": "A"})
        first, _ = ingest_document(db, doc.id)
        second, _ = ingest_document(db, doc.id)
        assert first.id != second.id
        assert db.query(ReportDB).count() == 2

    def test_missing_document(self, db, experian_mappings):
        with pytest.raises(DocumentNotFoundError):
            ingest_document(db, "no-such-id")

    def test_source_type_without_mappings(self, db, experian_mappings):
        doc = register(db, {"acct_num": "A"}, source_type="EQUIFAX")
        with pytest.raises(NoMappingsError):
            ingest_document(db, doc.id)
        assert db.query(ReportDB).count() == 0


# =============================================================================
# TEST: UPLOAD GATING
# =============================================================================

class TestUploadGating:

    def test_newer_upload_found(self, db, user):
        current = register(db, JANE, user_id=user.id, at=T0)
        newer = register(db, {**JANE, "firstName": " JANE "}, user_id=user.id, at=T0 + timedelta(days=30))
        assert find_newer_upload(db, current).id == newer.id

    def test_earliest_newer_upload_returned(self, db, user):
        current = register(db, JANE, user_id=user.id, at=T0)
        register(db, JANE, user_id=user.id, at=T0 + timedelta(days=60))
        first_newer = register(db, JANE, user_id=user.id, at=T0 + timedelta(days=10))
        assert find_newer_upload(db, current).id == first_newer.id

    def test_older_uploads_ignored(self, db, user):
        register(db, JANE, user_id=user.id, at=T0 - timedelta(days=1))
        current = register(db, JANE, user_id=user.id, at=T0)
        assert find_newer_upload(db, current) is None

    def test_different_report_ignored(self, db, user):
        current = register(db, JANE, user_id=user.id, at=T0)
        register(db, {**JANE, "lastName": "Roe"}, user_id=user.id, at=T0 + timedelta(days=1))
        assert find_newer_upload(db, current) is None

    def test_scoped_to_owner(self, db, user, admin):
        current = register(db, JANE, user_id=user.id, at=T0)
        register(db, JANE, user_id=admin.id, at=T0 + timedelta(days=1))
        assert find_newer_upload(db, current) is None
        assert find_newer_upload(db, current, user_id=admin.id) is not None

    def test_empty_fingerprint_never_matches(self, db, user):
        current = register(db, {"kind": "csv"}, user_id=user.id, at=T0)
        register(db, {"kind": "csv"}, user_id=user.id, at=T0 + timedelta(days=1))
        assert current.report_fingerprint == ""
        assert find_newer_upload(db, current) is None
        assert find_duplicates(db, current) == []

    def test_explicit_fingerprint(self, db, user):
        current = register(db, {"kind": "csv"}, user_id=user.id, at=T0)
        other = register(db, JANE, user_id=user.id, at=T0 + timedelta(days=1))
        found = find_newer_upload(db, current, fingerprint=other.report_fingerprint)
        assert found.id == other.id

    def test_duplicates_oldest_first(self, db, user):
        current = register(db, JANE, user_id=user.id, at=T0)
        later = register(db, JANE, user_id=user.id, at=T0 + timedelta(days=2))
        earlier = register(db, JANE, user_id=user.id, at=T0 - timedelta(days=2))
        register(db, {"ssn": "111"}, user_id=user.id, at=T0 + timedelta(days=1))
        assert [d.id for d in find_duplicates(db, current)] == [earlier.id, later.id]
