"""
Entidad de dominio: FieldSchema (esquema de un campo).
"""
from dataclasses import dataclass, field
from typing import Tuple

from repeater_batch.shared.constants.field_constants import FieldType


@dataclass(frozen=True)
class FieldSchema:
    """
    Describe un campo: nombre, clave estable y tipo.
    
    Solo los campos de tipo repetidor tienen sub-campos. La clave (`key`)
    es independiente del nombre y es lo que se guarda en la clave de
    revision.
    """
    
    name: str
    key: str
    type: FieldType = FieldType.SCALAR
    sub_fields: Tuple["FieldSchema", ...] = field(default_factory=tuple)
    
    def __post_init__(self):
        """Validaciones después de la inicialización."""
        if not self.name:
            raise ValueError("El nombre del campo no puede estar vacío")
        if not self.key:
            raise ValueError(f"El campo '{self.name}' no tiene clave")
        if self.type != FieldType.REPEATER and self.sub_fields:
            raise ValueError(f"Solo un repetidor puede tener sub-campos ('{self.name}')")
    
    @property
    def is_repeater(self) -> bool:
        """Indica si el campo es un repetidor."""
        return self.type == FieldType.REPEATER
