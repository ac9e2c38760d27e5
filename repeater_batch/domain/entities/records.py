"""
Registros planos producidos y consumidos por el pipeline.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set


@dataclass(frozen=True)
class FieldRecord:
    """Registro plano deseado: una clave de metadato y su valor sin serializar."""
    
    meta_key: str
    meta_value: Any
    source_field_key: str


@dataclass(frozen=True)
class PersistedRecord:
    """Fila existente en el almacen, con el valor ya des-serializado."""
    
    id: Any
    meta_key: str
    meta_value: Any


@dataclass(frozen=True)
class PlannedUpdate:
    """Registro cuyo valor cambio, junto con el ID de la fila a actualizar."""
    
    record: FieldRecord
    meta_id: Optional[Any] = None
    
    @property
    def meta_key(self) -> str:
        return self.record.meta_key


@dataclass
class FlattenResult:
    """
    Resultado del aplanado de un (sub)arbol.
    
    - records: registros en orden de emision
    - stale_keys: claves de filas sobrantes que deben borrarse
    - errors: sub-arboles omitidos por error (no detienen el pipeline)
    """
    
    records: List[FieldRecord] = field(default_factory=list)
    stale_keys: Set[str] = field(default_factory=set)
    errors: List[str] = field(default_factory=list)
    
    def merge(self, other: "FlattenResult") -> None:
        """Acumula el resultado de un sub-arbol en este resultado."""
        self.records.extend(other.records)
        self.stale_keys |= other.stale_keys
        self.errors.extend(other.errors)
    
    @property
    def keys(self) -> List[str]:
        return [r.meta_key for r in self.records]


@dataclass
class DiffResult:
    """Clasificacion de registros deseados frente a lo persistido."""
    
    to_insert: List[FieldRecord] = field(default_factory=list)
    to_update: List[PlannedUpdate] = field(default_factory=list)
    noop: List[FieldRecord] = field(default_factory=list)
    
    @property
    def has_writes(self) -> bool:
        return bool(self.to_insert or self.to_update)
