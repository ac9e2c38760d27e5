"""
Entidades de dominio.
"""
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.domain.entities.object_ref import ObjectRef, PostRef, UserRef, OptionRef
from repeater_batch.domain.entities.records import (
    FieldRecord,
    PersistedRecord,
    PlannedUpdate,
    FlattenResult,
    DiffResult,
)

__all__ = [
    "FieldSchema",
    "ObjectRef",
    "PostRef",
    "UserRef",
    "OptionRef",
    "FieldRecord",
    "PersistedRecord",
    "PlannedUpdate",
    "FlattenResult",
    "DiffResult",
]
