"""
Lectura del estado persistido antes de escribir.
"""
from typing import Dict, Iterable

from loguru import logger

from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.entities.records import PersistedRecord
from repeater_batch.domain.repositories.meta_store import IMetaStore
from repeater_batch.shared.utils.value_codec import unserialize


def as_count(value) -> int:
    """Convierte un valor guardado a numero de filas (0 si no es numerico)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(value, 0)
    try:
        return max(int(str(value).strip()), 0)
    except (TypeError, ValueError):
        return 0


class ExistingStateReader:
    """
    Obtiene los registros actuales de un objeto para un conjunto de claves.
    """

    def __init__(self, store: IMetaStore):
        self.store = store

    def fetch_existing(self, ref: ObjectRef, keys: Iterable[str]) -> Dict[str, PersistedRecord]:
        """
        Una sola consulta para todas las claves.

        Claves sin filas quedan fuera del resultado (camino de insercion).
        Si una clave tiene varias filas gana la de menor ID y el resto se
        reporta como anomalia; nunca se mezclan.

        Args:
            ref: Objeto dueño de los metadatos
            keys: Claves guardadas

        Returns:
            Dict[str, PersistedRecord]: clave -> registro existente
        """
        existing: Dict[str, PersistedRecord] = {}
        for row_id, meta_key, raw_value in self.store.select(ref, keys):
            if meta_key in existing:
                logger.warning(
                    f"Clave duplicada '{meta_key}' en {ref.kind.value} {ref.cache_id}: "
                    f"se usa ID {existing[meta_key].id}, se ignora ID {row_id}"
                )
                continue
            existing[meta_key] = PersistedRecord(id=row_id, meta_key=meta_key, meta_value=unserialize(raw_value))
        return existing

    def previous_count(self, ref: ObjectRef, path: str) -> int:
        """Numero de filas guardado para la ruta de un repetidor (0 si no existe)."""
        meta_key = ref.meta_key(path)
        record = self.fetch_existing(ref, [meta_key]).get(meta_key)
        return as_count(record.meta_value) if record else 0
