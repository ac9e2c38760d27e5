"""
Implementación SQLAlchemy del almacen plano de metadatos.

Todas las sentencias se construyen con SQLAlchemy Core sobre la tabla
de destino del objeto:
- SELECT ... WHERE key IN (...) AND object = ?        (una consulta)
- INSERT ... VALUES (...), (...), ...                  (una sentencia)
- UPDATE ... SET value = CASE key WHEN ... END         (una sentencia)
- DELETE ... WHERE key = ? AND object = ?              (una por clave)
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, insert, or_, select, update
from sqlalchemy.orm import Session
from loguru import logger

from repeater_batch.domain.entities.object_ref import ObjectRef, OptionRef
from repeater_batch.domain.repositories.meta_store import IMetaStore, StoredRow
from repeater_batch.infrastructure.database.destinations import DestinationRegistry, MetaTable
from repeater_batch.shared.constants.field_constants import REVISION_PREFIX, PATH_SEPARATOR
from repeater_batch.shared.exceptions.domain import UnknownDestinationException


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MetaRepository(IMetaStore):
    """
    Repositorio de metadatos sobre una sesion SQLAlchemy.
    El caller controla commit/rollback.
    """

    def __init__(self, db: Session, destinations: Optional[DestinationRegistry] = None):
        self.db = db
        self.destinations = destinations or DestinationRegistry()

    def _table(self, ref: ObjectRef) -> MetaTable:
        """
        Resuelve la tabla del objeto y verifica que las claves queden acotadas a el.
        """
        table = self.destinations.resolve(ref.kind)
        if (table.object is None) != (ref.object_id is None):
            # Sin columna de objeto solo se admiten buckets que van dentro de la clave
            raise UnknownDestinationException(ref.kind.value)
        return table

    def _scoped(self, table: MetaTable, ref: ObjectRef, stmt):
        if table.object is not None:
            stmt = stmt.where(table.object == ref.object_id)
        return stmt

    def _to_rows(self, result) -> List[StoredRow]:
        return [(row[0], row[1], row[2]) for row in result]

    def select(self, ref: ObjectRef, keys: Iterable[str]) -> List[StoredRow]:
        unique_keys = sorted(set(keys))
        if not unique_keys:
            return []

        table = self._table(ref)
        stmt = select(table.id, table.key, table.value).where(table.key.in_(unique_keys))
        stmt = self._scoped(table, ref, stmt).order_by(table.id)

        rows = self._to_rows(self.db.execute(stmt))
        logger.debug(f"SELECT {table.table.name}: {len(unique_keys)} claves -> {len(rows)} filas")
        return rows

    def select_all(self, ref: ObjectRef) -> List[StoredRow]:
        table = self._table(ref)
        stmt = select(table.id, table.key, table.value)
        if isinstance(ref, OptionRef):
            prefix = _escape_like(f"{ref.bucket}{PATH_SEPARATOR}")
            stmt = stmt.where(or_(
                table.key.like(f"{prefix}%", escape="\\"),
                table.key.like(f"{_escape_like(REVISION_PREFIX)}{prefix}%", escape="\\"),
            ))
        stmt = self._scoped(table, ref, stmt).order_by(table.id)
        return self._to_rows(self.db.execute(stmt))

    def insert_batch(self, ref: ObjectRef, rows: Sequence[Tuple[str, str]]) -> int:
        if not rows:
            return 0

        table = self._table(ref)
        values = []
        for key, value in rows:
            row = {table.key_column: key, table.value_column: value}
            if table.object_column:
                row[table.object_column] = ref.object_id
            values.append(row)

        result = self.db.execute(insert(table.table).values(values))
        logger.debug(f"INSERT {table.table.name}: {len(values)} filas enviadas, {result.rowcount} insertadas")
        return result.rowcount

    def update_batch(self, ref: ObjectRef, rows: Sequence[Tuple[str, str]]) -> int:
        if not rows:
            return 0

        table = self._table(ref)
        by_key = dict(rows)

        stmt = (
            update(table.table)
            .where(table.key.in_(list(by_key)))
            .values({table.value: case(by_key, value=table.key, else_=table.value)})
        )
        result = self.db.execute(self._scoped(table, ref, stmt))
        logger.debug(f"UPDATE {table.table.name}: {len(by_key)} claves, {result.rowcount} filas actualizadas")
        return result.rowcount

    def delete_one(self, ref: ObjectRef, key: str) -> bool:
        table = self._table(ref)
        stmt = delete(table.table).where(table.key == key)
        result = self.db.execute(self._scoped(table, ref, stmt))
        return bool(result.rowcount)
