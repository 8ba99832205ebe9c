"""
Credit Ingest - Mapping Registry

Holds canonical field definitions and source-type field mappings.

Reads hand the canonicalization engine an ordered list of mappings joined with
their canonical fields. Writes are batch upserts that either land completely
or not at all: every target field is resolved before anything is staged, and
the batch commits once.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, joinedload

from ..models.db_models import CanonicalFieldDB, FieldMappingDB
from ..models.ssot import CanonicalFieldDef, MappingInput, ResolvedMapping
from .errors import InvalidMappingPayloadError, UnknownCanonicalFieldError

logger = logging.getLogger(__name__)


# =============================================================================
# PAYLOAD VALIDATION
# =============================================================================

def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def parse_mapping_batch(payload: Any) -> Tuple[str, List[MappingInput]]:
    """
    Validate an upsert payload of the form
    {"sourceType": str, "mappings": [{"sourceField": str, "targetField": str}]}.

    Raises InvalidMappingPayloadError listing every malformed entry.
    """
    if not isinstance(payload, dict):
        raise InvalidMappingPayloadError("Payload must be an object")

    source_type = payload.get("sourceType")
    mappings = payload.get("mappings")
    if not _non_blank(source_type):
        raise InvalidMappingPayloadError("sourceType is required")
    if not isinstance(mappings, list):
        raise InvalidMappingPayloadError("mappings must be a list")

    return source_type.strip(), validate_mappings(mappings)


def validate_mappings(mappings: Sequence[Any]) -> List[MappingInput]:
    parsed = []
    problems = []
    for position, item in enumerate(mappings):
        if isinstance(item, MappingInput):
            source_field, target_field = item.source_field, item.target_field
        elif isinstance(item, dict):
            source_field, target_field = item.get("sourceField"), item.get("targetField")
        else:
            problems.append(f"mappings[{position}] must be an object")
            continue

        if not _non_blank(source_field):
            problems.append(f"mappings[{position}].sourceField is required")
        if not _non_blank(target_field):
            problems.append(f"mappings[{position}].targetField is required")
        if _non_blank(source_field) and _non_blank(target_field):
            parsed.append(MappingInput(source_field.strip(), target_field.strip()))

    if problems:
        raise InvalidMappingPayloadError("; ".join(problems))
    return parsed


def _to_field_def(field: CanonicalFieldDB) -> CanonicalFieldDef:
    return CanonicalFieldDef(
        id=field.id,
        name=field.name,
        data_type=field.data_type,
        description=field.description,
    )


# =============================================================================
# REGISTRY
# =============================================================================

class MappingRegistry:
    """
    Mapping store access over an explicit session.

    Pass a session per request (or a fixture session in tests); the registry
    keeps no state of its own.
    """

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # CANONICAL FIELDS
    # -------------------------------------------------------------------------

    def list_canonical_fields(self) -> List[CanonicalFieldDB]:
        return self.db.query(CanonicalFieldDB).order_by(CanonicalFieldDB.name.asc()).all()

    def get_canonical_field(self, name: str) -> Optional[CanonicalFieldDB]:
        return self.db.query(CanonicalFieldDB).filter(CanonicalFieldDB.name == name).first()

    def upsert_canonical_field(
        self,
        name: str,
        data_type: str = "string",
        description: Optional[str] = None,
    ) -> CanonicalFieldDB:
        """Create a canonical field or update the type/description of an existing one."""
        if not _non_blank(name):
            raise InvalidMappingPayloadError("name is required")
        if not _non_blank(data_type):
            raise InvalidMappingPayloadError("dataType is required")

        field = self.get_canonical_field(name.strip())
        if field is None:
            field = CanonicalFieldDB(name=name.strip(), data_type=data_type.strip(), description=description)
            self.db.add(field)
        else:
            field.data_type = data_type.strip()
            field.description = description

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(field)
        return field

    # -------------------------------------------------------------------------
    # MAPPINGS
    # -------------------------------------------------------------------------

    def get_mappings(self, source_type: str) -> List[ResolvedMapping]:
        """
        Active mappings for a source type, in insertion order, joined with
        their canonical fields. Mappings whose canonical field is gone are skipped.
        """
        rows = (
            self.db.query(FieldMappingDB)
            .options(joinedload(FieldMappingDB.canonical_field))
            .filter(FieldMappingDB.source_type == source_type)
            .order_by(FieldMappingDB.id.asc())
            .all()
        )
        return [
            ResolvedMapping(
                source_field=row.source_field,
                canonical_field=_to_field_def(row.canonical_field),
                source_type=row.source_type,
            )
            for row in rows
            if row.canonical_field is not None
        ]

    def list_source_types(self) -> List[str]:
        rows = (
            self.db.query(FieldMappingDB.source_type)
            .distinct()
            .order_by(FieldMappingDB.source_type.asc())
            .all()
        )
        return [row[0] for row in rows]

    def upsert_mappings(self, source_type: str, mappings: Sequence[Any]) -> List[FieldMappingDB]:
        """
        Upsert a batch of (sourceField, targetField) pairs for `source_type`.

        Unknown target fields reject the whole batch with every unknown name
        listed; nothing is written in that case.
        """
        if not _non_blank(source_type):
            raise InvalidMappingPayloadError("sourceType is required")
        source_type = source_type.strip()
        inputs = validate_mappings(mappings)

        target_names = list(dict.fromkeys(m.target_field for m in inputs))
        fields_by_name: Dict[str, CanonicalFieldDB] = {}
        if target_names:
            fields_by_name = {
                f.name: f
                for f in self.db.query(CanonicalFieldDB).filter(CanonicalFieldDB.name.in_(target_names)).all()
            }
        unknown = [name for name in target_names if name not in fields_by_name]
        if unknown:
            logger.warning(f"Rejected mapping batch for {source_type}: unknown fields {unknown}")
            raise UnknownCanonicalFieldError(unknown)

        saved: Dict[Tuple[str, str], FieldMappingDB] = {}
        try:
            for item in inputs:
                key = (item.source_field, item.target_field)
                row = saved.get(key) or self._find_mapping(source_type, item.source_field, item.target_field)
                if row is None:
                    row = FieldMappingDB(
                        source_type=source_type,
                        source_field=item.source_field,
                        target_field=item.target_field,
                    )
                    self.db.add(row)
                row.canonical_field_id = fields_by_name[item.target_field].id
                saved[key] = row
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        rows = list(saved.values())
        for row in rows:
            self.db.refresh(row)
        logger.info(f"Upserted {len(rows)} field mappings for {source_type}")
        return rows

    def delete_mapping(self, mapping_id: int) -> bool:
        row = self.db.query(FieldMappingDB).filter(FieldMappingDB.id == mapping_id).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True

    def _find_mapping(self, source_type: str, source_field: str, target_field: str) -> Optional[FieldMappingDB]:
        return (
            self.db.query(FieldMappingDB)
            .filter(
                FieldMappingDB.source_type == source_type,
                FieldMappingDB.source_field == source_field,
                FieldMappingDB.target_field == target_field,
            )
            .first()
        )
