"""
Coherencia de cache alrededor de una escritura.

Orden obligatorio:
1. invalidate() antes de escribir
2. repopulate() solo si la escritura se confirmo

Si la escritura falla, queda solo la invalidacion y la siguiente lectura
recalcula desde el almacen.
"""
from typing import Iterable, Optional

from repeater_batch.core.config import settings
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.entities.records import FieldRecord
from repeater_batch.domain.repositories.object_cache import IObjectCache


def composite_scope(ref: ObjectRef) -> str:
    """Scope de la vista compuesta de todos los metadatos de un objeto."""
    return f"{ref.kind.value}_meta"


class CacheCoordinator:
    """Invalida y repuebla las entradas de cache de un objeto."""

    def __init__(self, cache: IObjectCache, group: Optional[str] = None):
        self.cache = cache
        self.group = group or settings.CACHE_GROUP

    def field_key(self, ref: ObjectRef, meta_key: str) -> str:
        """Clave de cache de un valor individual, acotada a (objeto, ruta)."""
        return f"load_value/post_id={ref.cache_id}/name={meta_key}"

    def invalidate(self, ref: ObjectRef) -> None:
        """Descarta la vista compuesta del objeto."""
        self.cache.delete(composite_scope(ref), ref.cache_id)

    def repopulate(self, ref: ObjectRef, records: Iterable[FieldRecord]) -> int:
        """Guarda cada registro escrito en su propia entrada. Retorna cuantas se guardaron."""
        count = 0
        for record in records:
            self.cache.set(self.group, self.field_key(ref, record.meta_key), record.meta_value)
            count += 1
        return count

    def forget(self, ref: ObjectRef, keys: Iterable[str]) -> None:
        """Descarta las entradas individuales de claves eliminadas."""
        for key in keys:
            self.cache.delete(self.group, self.field_key(ref, key))
