"""
Clasificacion de registros deseados frente al estado persistido.
"""
from typing import Mapping, Sequence

from repeater_batch.domain.entities.records import DiffResult, FieldRecord, PersistedRecord, PlannedUpdate
from repeater_batch.shared.utils.value_codec import values_equal


def diff(desired: Sequence[FieldRecord], existing: Mapping[str, PersistedRecord]) -> DiffResult:
    """
    Separa los registros en insertar / actualizar / sin cambios.

    - Clave ausente en existing -> insertar
    - Valor igual (comparacion semantica, sin serializar) -> sin cambios
    - Valor distinto -> actualizar la fila existente (se conserva su ID)

    Args:
        desired: Registros producidos por el aplanado
        existing: Registros actuales por clave

    Returns:
        DiffResult: Registros clasificados
    """
    result = DiffResult()
    for record in desired:
        current = existing.get(record.meta_key)
        if current is None:
            result.to_insert.append(record)
        elif values_equal(record.meta_value, current.meta_value):
            result.noop.append(record)
        else:
            result.to_update.append(PlannedUpdate(record=record, meta_id=current.id))
    return result
