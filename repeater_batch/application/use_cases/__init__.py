"""
Casos de uso de la libreria.
"""
from repeater_batch.application.use_cases.field_update_use_cases import FieldUpdatePipeline

__all__ = ["FieldUpdatePipeline"]
