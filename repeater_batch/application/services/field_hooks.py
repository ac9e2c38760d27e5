"""
Puntos de extension por campo.

Se inyectan explicitamente en el pipeline (no hay registro global):

- FieldTransformChain: transforma el valor de cada campo hoja antes de
  aplanarlo. Se aplican primero las reglas por clave, luego por nombre y
  por ultimo por tipo, cada grupo en orden de registro.
- WriteFilterChain: se consulta antes de serializar cada registro. Si un
  filtro retorna algo distinto de None, el registro se descarta del lote
  (veto). Un veto no es un error.
- WriteObserverChain: se notifica despues de cada sentencia aplicada, con
  las claves escritas (o borradas) y las filas afectadas.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from loguru import logger

from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.shared.constants.field_constants import TRANSFORM_ATTRIBUTES, WriteOperation
from repeater_batch.shared.exceptions.domain import InvalidFieldValueException


FieldTransform = Callable[[Any, ObjectRef, FieldSchema], Any]

WriteFilter = Callable[[ObjectRef, str, Any, WriteOperation], Optional[Any]]

WriteObserver = Callable[[ObjectRef, WriteOperation, List[str], int], None]


@dataclass(frozen=True)
class FieldTransformRule:
    """
    Regla de transformacion.

    - attribute: atributo del esquema a comparar ("key", "name" o "type")
    - match: valor que debe tener ese atributo
    - transform: funcion (valor, objeto, esquema) -> nuevo valor
    """

    attribute: str
    match: str
    transform: FieldTransform

    def __post_init__(self):
        if self.attribute not in TRANSFORM_ATTRIBUTES:
            raise ValueError(
                f"Atributo '{self.attribute}' no soportado (usar uno de {TRANSFORM_ATTRIBUTES})"
            )

    def matches(self, field: FieldSchema) -> bool:
        target = getattr(field, self.attribute)
        if isinstance(target, Enum):
            target = target.value
        return target == self.match


class FieldTransformChain:
    """Lista ordenada de reglas de transformacion."""

    def __init__(self, rules: Iterable[FieldTransformRule] = ()):
        self._rules: List[FieldTransformRule] = list(rules)

    def add(self, attribute: str, match: str, transform: FieldTransform) -> None:
        """Registra una regla al final de la cadena."""
        self._rules.append(FieldTransformRule(attribute, match, transform))

    def apply(self, value: Any, field: FieldSchema, ref: ObjectRef) -> Any:
        """
        Aplica key -> name -> type sobre el valor de un campo hoja.

        Raises:
            InvalidFieldValueException: Si alguna transformacion falla
        """
        for attribute in TRANSFORM_ATTRIBUTES:
            for rule in self._rules:
                if rule.attribute == attribute and rule.matches(field):
                    try:
                        value = rule.transform(value, ref, field)
                    except Exception as e:
                        raise InvalidFieldValueException(
                            field.name, f"transformacion por {rule.attribute}={rule.match} fallo: {e}"
                        ) from e
        return value


class WriteFilterChain:
    """Lista ordenada de filtros de veto."""

    def __init__(self, filters: Iterable[WriteFilter] = ()):
        self._filters: List[WriteFilter] = list(filters)

    def add(self, write_filter: WriteFilter) -> None:
        """Registra un filtro al final de la cadena."""
        self._filters.append(write_filter)

    def vetoed(self, ref: ObjectRef, meta_key: str, value: Any, operation: WriteOperation) -> bool:
        """Indica si algun filtro corta la escritura de este registro."""
        for write_filter in self._filters:
            if write_filter(ref, meta_key, value, operation) is not None:
                logger.debug(f"Registro '{meta_key}' vetado ({operation.value}) en {ref.kind.value} {ref.cache_id}")
                return True
        return False


class WriteObserverChain:
    """Observadores notificados despues de cada escritura aplicada."""

    def __init__(self, observers: Iterable[WriteObserver] = ()):
        self._observers: List[WriteObserver] = list(observers)

    def add(self, observer: WriteObserver) -> None:
        """Registra un observador al final de la cadena."""
        self._observers.append(observer)

    def notify(self, ref: ObjectRef, operation: WriteOperation, keys: List[str], affected: int) -> None:
        """Avisa a cada observador, en orden de registro."""
        for observer in self._observers:
            observer(ref, operation, keys, affected)
