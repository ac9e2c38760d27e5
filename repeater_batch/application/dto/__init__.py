"""
DTOs de entrada y salida del pipeline.
"""
from repeater_batch.application.dto.field_dto import FieldSchemaDTO
from repeater_batch.application.dto.update_dto import UpdateResultDTO

__all__ = [
    "FieldSchemaDTO",
    "UpdateResultDTO",
]
