"""
Escritura por lotes en el almacen de metadatos.

- Inserciones: una sola sentencia multi-fila
- Actualizaciones: una sola sentencia con CASE por clave
- Borrados: una operacion por clave, siempre acotada al objeto

Antes de serializar cada registro se consultan los filtros de veto; los
registros vetados se descartan del lote sin considerarse error. Despues
de cada sentencia se notifica a los observadores con las claves aplicadas.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from repeater_batch.application.services.field_hooks import WriteFilterChain, WriteObserverChain
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.entities.records import FieldRecord, PlannedUpdate
from repeater_batch.domain.repositories.meta_store import IMetaStore
from repeater_batch.shared.constants.field_constants import WriteOperation
from repeater_batch.shared.exceptions.persistence import PartialBatchFailureException, StaleReadRaceException
from repeater_batch.shared.utils.value_codec import serialize


class BatchWriter:
    """
    Aplica los conjuntos calculados por el diff.

    Una instancia por invocacion: acumula las claves vetadas en `vetoed`.
    """

    def __init__(
        self,
        store: IMetaStore,
        filters: Optional[WriteFilterChain] = None,
        observers: Optional[WriteObserverChain] = None,
    ):
        self.store = store
        self.filters = filters or WriteFilterChain()
        self.observers = observers or WriteObserverChain()
        self.vetoed: List[str] = []

    def _prepare(self, ref: ObjectRef, records: Iterable[FieldRecord], operation: WriteOperation) -> List[Tuple[str, str]]:
        rows = []
        for record in records:
            if self.filters.vetoed(ref, record.meta_key, record.meta_value, operation):
                self.vetoed.append(record.meta_key)
                continue
            rows.append((record.meta_key, serialize(record.meta_value)))
        return rows

    def apply_insert(self, ref: ObjectRef, records: Sequence[FieldRecord]) -> int:
        """
        Inserta todos los registros en una sola sentencia.

        Raises:
            PartialBatchFailureException: Si el almacen inserta menos filas que las enviadas
        """
        rows = self._prepare(ref, records, WriteOperation.ADD)
        if not rows:
            return 0

        inserted = self.store.insert_batch(ref, rows)
        if 0 <= inserted < len(rows):
            raise PartialBatchFailureException("insert", len(rows), inserted)
        if inserted < 0:
            logger.warning(f"El driver no reporto filas insertadas para {ref.kind.value} {ref.cache_id}")
            inserted = len(rows)

        self.observers.notify(ref, WriteOperation.ADD, [key for key, _ in rows], inserted)
        logger.debug(f"Insertadas {inserted} filas en {ref.kind.value} {ref.cache_id}")
        return inserted

    def apply_update(self, ref: ObjectRef, planned: Sequence[PlannedUpdate]) -> int:
        """
        Actualiza todos los registros en una sola sentencia.

        Registros sin fila previa (sin meta_id) se desvian a la insercion.

        Raises:
            StaleReadRaceException: Si alguna fila leida antes del diff ya no existe
        """
        missing = [p.record for p in planned if p.meta_id is None]
        targets = [p.record for p in planned if p.meta_id is not None]

        written = self.apply_insert(ref, missing) if missing else 0

        rows = self._prepare(ref, targets, WriteOperation.UPDATE)
        if not rows:
            return written

        updated = self.store.update_batch(ref, rows)
        if 0 <= updated < len(rows):
            raise StaleReadRaceException("update", len(rows), updated)
        if updated < 0:
            logger.warning(f"El driver no reporto filas actualizadas para {ref.kind.value} {ref.cache_id}")
            updated = len(rows)

        self.observers.notify(ref, WriteOperation.UPDATE, [key for key, _ in rows], updated)
        logger.debug(f"Actualizadas {updated} filas en {ref.kind.value} {ref.cache_id}")
        return written + updated

    def apply_delete(self, ref: ObjectRef, keys: Iterable[str]) -> int:
        """Elimina cada clave del objeto. Retorna cuantas claves tenian filas."""
        removed = []
        for key in sorted(set(keys)):
            if self.store.delete_one(ref, key):
                removed.append(key)
        if removed:
            self.observers.notify(ref, WriteOperation.DELETE, removed, len(removed))
            logger.debug(f"Eliminadas {len(removed)} claves sobrantes en {ref.kind.value} {ref.cache_id}")
        return len(removed)
