"""
Tests for the mapping registry.

Covers canonical field upserts, ordered mapping reads, batch upsert semantics
(no duplicates, link updates) and batch atomicity on unknown target fields.
"""
import pytest

from credit_ingest.models.db_models import CanonicalFieldDB, FieldMappingDB
from credit_ingest.models.ssot import MappingInput
from credit_ingest.services.errors import InvalidMappingPayloadError, UnknownCanonicalFieldError
from credit_ingest.services.mapping_registry import MappingRegistry, parse_mapping_batch


@pytest.fixture
def registry(db):
    registry = MappingRegistry(db)
    registry.upsert_canonical_field("accountNumber", "string", "Primary account identifier")
    registry.upsert_canonical_field("balance", "decimal", "Outstanding balance")
    registry.upsert_canonical_field("openedDate", "date")
    return registry


# =============================================================================
# TEST: CANONICAL FIELDS
# =============================================================================

class TestCanonicalFields:

    def test_listed_by_name(self, registry):
        names = [f.name for f in registry.list_canonical_fields()]
        assert names == ["accountNumber", "balance", "openedDate"]

    def test_upsert_updates_existing(self, registry, db):
        registry.upsert_canonical_field("balance", "float", "Balance in dollars")
        fields = db.query(CanonicalFieldDB).filter(CanonicalFieldDB.name == "balance").all()
        assert len(fields) == 1
        assert fields[0].data_type == "float"
        assert fields[0].description == "Balance in dollars"

    def test_blank_name_rejected(self, registry):
        with pytest.raises(InvalidMappingPayloadError):
            registry.upsert_canonical_field("  ", "string")


# =============================================================================
# TEST: UPSERT
# =============================================================================

class TestUpsertMappings:

    def test_creates_mappings_linked_by_name(self, registry, db):
        saved = registry.upsert_mappings("EXPERIAN", [
            {"sourceField": "acct_num", "targetField": "accountNumber"},
            {"sourceField": "balance", "targetField": "balance"},
        ])
        assert len(saved) == 2
        balance_field = registry.get_canonical_field("balance")
        row = db.query(FieldMappingDB).filter(FieldMappingDB.source_field == "balance").one()
        assert row.canonical_field_id == balance_field.id
        assert row.target_field == "balance"

    def test_resubmitting_triple_does_not_duplicate(self, registry, db):
        batch = [{"sourceField": "acct_num", "targetField": "accountNumber"}]
        registry.upsert_mappings("EXPERIAN", batch)
        registry.upsert_mappings("EXPERIAN", batch)
        assert db.query(FieldMappingDB).count() == 1

    def test_duplicate_within_batch_saved_once(self, registry, db):
        saved = registry.upsert_mappings("EXPERIAN", [
            MappingInput("acct_num", "accountNumber"),
            MappingInput("acct_num", "accountNumber"),
        ])
        assert len(saved) == 1
        assert db.query(FieldMappingDB).count() == 1

    def test_resubmit_relinks_to_recreated_field(self, registry, db):
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "opened", "targetField": "openedDate"}])
        old_field = registry.get_canonical_field("openedDate")
        db.delete(old_field)
        db.commit()
        row = db.query(FieldMappingDB).one()
        db.refresh(row)
        row.canonical_field_id = None
        db.commit()

        new_field = registry.upsert_canonical_field("openedDate", "datetime")
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "opened", "targetField": "openedDate"}])

        row = db.query(FieldMappingDB).one()
        assert row.canonical_field_id == new_field.id

    def test_same_source_field_may_feed_two_targets(self, registry, db):
        registry.upsert_mappings("ARRAY", [
            {"sourceField": "acct", "targetField": "accountNumber"},
            {"sourceField": "acct", "targetField": "balance"},
        ])
        assert db.query(FieldMappingDB).count() == 2

    def test_unknown_target_rejects_whole_batch(self, registry, db):
        with pytest.raises(UnknownCanonicalFieldError) as exc_info:
            registry.upsert_mappings("EXPERIAN", [
                {"sourceField": "acct_num", "targetField": "accountNumber"},
                {"sourceField": "x", "targetField": "doesNotExist"},
                {"sourceField": "y", "targetField": "alsoMissing"},
                {"sourceField": "z", "targetField": "doesNotExist"},
            ])
        assert exc_info.value.unknown_names == ["doesNotExist", "alsoMissing"]
        assert db.query(FieldMappingDB).count() == 0

    def test_single_unknown_target(self, registry, db):
        with pytest.raises(UnknownCanonicalFieldError) as exc_info:
            registry.upsert_mappings("EXPERIAN", [{"sourceField": "x", "targetField": "doesNotExist"}])
        assert exc_info.value.unknown_names == ["doesNotExist"]
        assert db.query(FieldMappingDB).count() == 0

    def test_unknown_target_leaves_existing_links_untouched(self, registry, db):
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "acct_num", "targetField": "accountNumber"}])
        before = [(m.source_field, m.canonical_field.name) for m in registry.get_mappings("EXPERIAN")]

        with pytest.raises(UnknownCanonicalFieldError):
            registry.upsert_mappings("EXPERIAN", [
                {"sourceField": "balance", "targetField": "balance"},
                {"sourceField": "x", "targetField": "nope"},
            ])

        after = [(m.source_field, m.canonical_field.name) for m in registry.get_mappings("EXPERIAN")]
        assert before == after

    @pytest.mark.parametrize("mappings", [
        [{"sourceField": "", "targetField": "balance"}],
        [{"sourceField": "balance"}],
        [{"targetField": "balance"}],
        [{"sourceField": 5, "targetField": "balance"}],
        ["balance"],
    ])
    def test_malformed_entries_rejected(self, registry, db, mappings):
        with pytest.raises(InvalidMappingPayloadError):
            registry.upsert_mappings("EXPERIAN", mappings)
        assert db.query(FieldMappingDB).count() == 0

    def test_blank_source_type_rejected(self, registry):
        with pytest.raises(InvalidMappingPayloadError):
            registry.upsert_mappings("", [{"sourceField": "a", "targetField": "balance"}])

    def test_empty_batch_saves_nothing(self, registry):
        assert registry.upsert_mappings("EXPERIAN", []) == []


# =============================================================================
# TEST: READS
# =============================================================================

class TestGetMappings:

    def test_ordered_by_insertion_and_joined(self, registry):
        registry.upsert_mappings("EQUIFAX", [
            {"sourceField": "current_balance", "targetField": "balance"},
            {"sourceField": "account_no", "targetField": "accountNumber"},
        ])
        registry.upsert_mappings("EQUIFAX", [{"sourceField": "open_date", "targetField": "openedDate"}])

        mappings = registry.get_mappings("EQUIFAX")
        assert [m.source_field for m in mappings] == ["current_balance", "account_no", "open_date"]
        assert mappings[0].canonical_field.name == "balance"
        assert mappings[0].canonical_field.data_type == "decimal"
        assert mappings[2].canonical_field.data_type == "date"

    def test_scoped_to_source_type(self, registry):
        registry.upsert_mappings("EQUIFAX", [{"sourceField": "account_no", "targetField": "accountNumber"}])
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "acct_num", "targetField": "accountNumber"}])
        assert [m.source_field for m in registry.get_mappings("EXPERIAN")] == ["acct_num"]
        assert registry.get_mappings("UNKNOWN") == []

    def test_unlinked_mappings_skipped(self, registry, db):
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "acct_num", "targetField": "accountNumber"}])
        db.add(FieldMappingDB(source_type="EXPERIAN", source_field="orphan", target_field="gone"))
        db.commit()
        assert [m.source_field for m in registry.get_mappings("EXPERIAN")] == ["acct_num"]

    def test_list_source_types(self, registry):
        registry.upsert_mappings("EXPERIAN", [{"sourceField": "a", "targetField": "balance"}])
        registry.upsert_mappings("ARRAY", [{"sourceField": "b", "targetField": "balance"}])
        assert registry.list_source_types() == ["ARRAY", "EXPERIAN"]

    def test_delete_mapping(self, registry, db):
        saved = registry.upsert_mappings("EXPERIAN", [{"sourceField": "a", "targetField": "balance"}])
        assert registry.delete_mapping(saved[0].id) is True
        assert registry.delete_mapping(saved[0].id) is False
        assert registry.get_mappings("EXPERIAN") == []


# =============================================================================
# TEST: PAYLOAD PARSING
# =============================================================================

class TestParseMappingBatch:

    def test_valid_payload(self):
        source_type, mappings = parse_mapping_batch({
            "sourceType": " EXPERIAN ",
            "mappings": [{"sourceField": "acct_num", "targetField": "accountNumber"}],
        })
        assert source_type == "EXPERIAN"
        assert mappings == [MappingInput("acct_num", "accountNumber")]

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"sourceType": "EXPERIAN"},
        {"mappings": []},
        {"sourceType": "", "mappings": []},
        {"sourceType": "EXPERIAN", "mappings": {"sourceField": "a"}},
    ])
    def test_invalid_payload(self, payload):
        with pytest.raises(InvalidMappingPayloadError):
            parse_mapping_batch(payload)

    def test_every_problem_reported(self):
        with pytest.raises(InvalidMappingPayloadError) as exc_info:
            parse_mapping_batch({
                "sourceType": "EXPERIAN",
                "mappings": [{"sourceField": "a"}, {"targetField": "b"}],
            })
        message = str(exc_info.value)
        assert "mappings[0].targetField" in message
        assert "mappings[1].sourceField" in message
