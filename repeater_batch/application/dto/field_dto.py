"""
DTOs relacionados con esquemas de campos.
"""
from typing import List

from pydantic import BaseModel, Field, field_validator

from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.shared.constants.field_constants import FieldType


class FieldSchemaDTO(BaseModel):
    """
    DTO para recibir la definicion de un campo tal como la envia el caller.
    
    Cualquier tipo distinto de "repeater" (text, number, image, ...) se
    trata como campo simple.
    """
    
    name: str = Field(..., min_length=1, description="Nombre del campo")
    key: str = Field(..., min_length=1, description="Clave estable del campo")
    type: str = Field(default=FieldType.SCALAR.value, description="Tipo de campo")
    sub_fields: List["FieldSchemaDTO"] = Field(default_factory=list, description="Sub-campos (solo repetidor)")
    
    @field_validator("type")
    @classmethod
    def normalize_type(cls, value: str) -> str:
        """Reduce el tipo a scalar/repeater."""
        return FieldType.REPEATER.value if value == FieldType.REPEATER.value else FieldType.SCALAR.value
    
    def to_entity(self) -> FieldSchema:
        """Convierte el DTO en la entidad inmutable de dominio."""
        return FieldSchema(
            name=self.name,
            key=self.key,
            type=FieldType(self.type),
            sub_fields=tuple(sub.to_entity() for sub in self.sub_fields),
        )


FieldSchemaDTO.model_rebuild()
