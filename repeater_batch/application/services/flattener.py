"""
Aplanado de un arbol de campos a registros clave/valor.

Para un repetidor "items" con sub-campo "title":

    [{"field_title": "A"}, {"field_title": "B"}]

produce, en este orden:

    items_0_title = "A"      _items_0_title = "field_title"
    items_1_title = "B"      _items_1_title = "field_title"
    items = 2                _items = "field_items"

La ruta de un sub-campo depende solo de (ruta padre, indice, nombre).
Si antes habia mas filas guardadas que ahora, las claves de las filas
sobrantes se devuelven en stale_keys para borrarlas.

El tipo de nodo se resuelve con una lista ordenada de estrategias; la
primera que soporta el esquema lo procesa.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Set

from loguru import logger

from repeater_batch.application.services.field_hooks import FieldTransformChain
from repeater_batch.core.config import settings
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.entities.records import FieldRecord, FlattenResult
from repeater_batch.shared.constants.field_constants import PATH_SEPARATOR, REVISION_PREFIX
from repeater_batch.shared.exceptions.domain import InvalidFieldValueException


PreviousCount = Callable[[str], int]


def join_path(parent: str, index: int, name: str) -> str:
    """Ruta de un sub-campo: padre_indice_nombre."""
    return f"{parent}{PATH_SEPARATOR}{index}{PATH_SEPARATOR}{name}"


def revision_key(meta_key: str) -> str:
    """Clave de revision de una clave guardada."""
    return f"{REVISION_PREFIX}{meta_key}"


def field_pair(ref: ObjectRef, path: str, value: Any, field: FieldSchema) -> List[FieldRecord]:
    """Par valor + revision de un campo, con las claves que usa el destino del objeto."""
    meta_key = ref.meta_key(path)
    return [
        FieldRecord(meta_key=meta_key, meta_value=value, source_field_key=field.key),
        FieldRecord(meta_key=revision_key(meta_key), meta_value=field.key, source_field_key=field.key),
    ]


class FlattenStrategy(Protocol):
    """
    Protocolo para estrategias de aplanado.

    Cualquier clase con supports/flatten puede pasarse al Flattener.
    """

    def supports(self, field: FieldSchema) -> bool:
        ...

    def flatten(self, value: Any, field: FieldSchema, path: str, ctx: "FlattenContext") -> FlattenResult:
        ...


@dataclass
class FlattenContext:
    """Estado compartido por una llamada de aplanado (no se reutiliza entre llamadas)."""

    ref: ObjectRef
    previous_count: PreviousCount
    transforms: FieldTransformChain
    clone_index_key: str
    flattener: "Flattener"

    def descend(self, value: Any, field: FieldSchema, path: str) -> FlattenResult:
        """Aplana un nodo con la estrategia que corresponda."""
        return self.flattener.strategy_for(field).flatten(value, field, path, self)

    def descend_isolated(self, value: Any, field: FieldSchema, path: str) -> FlattenResult:
        """
        Igual que descend, pero un error en el sub-arbol solo anula su aporte.
        """
        try:
            return self.descend(value, field, path)
        except Exception as e:
            logger.warning(f"Sub-arbol '{path}' omitido en {self.ref.kind.value} {self.ref.cache_id}: {e}")
            return FlattenResult(errors=[f"{path}: {e}"])


class LeafFlattenStrategy:
    """Campo simple: aplica transformaciones y emite valor + revision."""

    def supports(self, field: FieldSchema) -> bool:
        return not field.is_repeater

    def flatten(self, value: Any, field: FieldSchema, path: str, ctx: FlattenContext) -> FlattenResult:
        value = ctx.transforms.apply(value, field, ctx.ref)
        return FlattenResult(records=field_pair(ctx.ref, path, value, field))


class RepeaterFlattenStrategy:
    """Repetidor: recorre filas y sub-campos, emite el conteo y calcula filas sobrantes."""

    def supports(self, field: FieldSchema) -> bool:
        return field.is_repeater

    def flatten(self, value: Any, field: FieldSchema, path: str, ctx: FlattenContext) -> FlattenResult:
        result = FlattenResult()
        rows = self._rows(value, field, ctx.clone_index_key)

        for index, row in enumerate(rows):
            for sub_field in field.sub_fields:
                sub_path = join_path(path, index, sub_field.name)
                raw = row.get(sub_field.key, row.get(sub_field.name))
                if sub_field.is_repeater:
                    result.merge(ctx.descend_isolated(raw, sub_field, sub_path))
                else:
                    result.merge(ctx.descend(raw, sub_field, sub_path))

        total = len(rows)
        result.records.extend(field_pair(ctx.ref, path, total, field))

        # Filas guardadas de mas: se borran aunque el valor nuevo este vacio
        previous = ctx.previous_count(path)
        if previous > total:
            result.stale_keys |= self.stale_tail(field, path, total, previous, ctx)
            logger.debug(f"Repetidor '{path}': {previous} -> {total} filas, {previous - total} sobrantes")

        return result

    def stale_tail(self, field: FieldSchema, path: str, start: int, end: int, ctx: FlattenContext) -> Set[str]:
        """Claves de las filas [start, end) de un repetidor, incluyendo repetidores anidados."""
        keys: Set[str] = set()
        for index in range(start, end):
            for sub_field in field.sub_fields:
                sub_path = join_path(path, index, sub_field.name)
                meta_key = ctx.ref.meta_key(sub_path)
                keys.add(meta_key)
                keys.add(revision_key(meta_key))
                if sub_field.is_repeater:
                    nested = ctx.previous_count(sub_path)
                    if nested:
                        keys |= self.stale_tail(sub_field, sub_path, 0, nested, ctx)
        return keys

    def _rows(self, value: Any, field: FieldSchema, clone_index_key: str) -> List[Mapping]:
        """Normaliza el valor a una lista de filas, sin la fila plantilla."""
        if not value:
            return []
        if isinstance(value, Mapping):
            rows = [row for row_id, row in value.items() if row_id != clone_index_key]
        elif isinstance(value, (list, tuple)):
            rows = list(value)
        else:
            raise InvalidFieldValueException(field.name, "se esperaba una lista de filas")

        for row in rows:
            if not isinstance(row, Mapping):
                raise InvalidFieldValueException(field.name, f"fila con tipo {type(row).__name__}")
        return rows


def default_strategies() -> List[FlattenStrategy]:
    """Estrategias por defecto: repetidor primero, luego campo simple."""
    return [RepeaterFlattenStrategy(), LeafFlattenStrategy()]


class Flattener:
    """
    Punto de entrada del aplanado.

    Es una funcion pura respecto a su entrada: cada llamada arma su propio
    contexto y retorna los registros acumulados.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[FlattenStrategy]] = None,
        transforms: Optional[FieldTransformChain] = None,
        clone_index_key: Optional[str] = None,
    ):
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.transforms = transforms or FieldTransformChain()
        self.clone_index_key = clone_index_key or settings.CLONE_INDEX_KEY

    def strategy_for(self, field: FieldSchema) -> FlattenStrategy:
        for strategy in self.strategies:
            if strategy.supports(field):
                return strategy
        raise InvalidFieldValueException(field.name, f"sin estrategia para el tipo '{field.type.value}'")

    def flatten(
        self,
        value: Any,
        schema: FieldSchema,
        ref: ObjectRef,
        previous_count: PreviousCount,
        path: Optional[str] = None,
    ) -> FlattenResult:
        """
        Aplana el valor de un campo.

        Args:
            value: Lista de filas (repetidor) o valor simple
            schema: Esquema del campo
            ref: Objeto dueño de los metadatos (se pasa a las transformaciones)
            previous_count: Lectura del conteo guardado para una ruta de repetidor
            path: Ruta base; por defecto el nombre del campo

        Returns:
            FlattenResult: registros, claves sobrantes y sub-arboles omitidos
        """
        ctx = FlattenContext(
            ref=ref,
            previous_count=previous_count,
            transforms=self.transforms,
            clone_index_key=self.clone_index_key,
            flattener=self,
        )
        return ctx.descend(value, schema, path or schema.name)
