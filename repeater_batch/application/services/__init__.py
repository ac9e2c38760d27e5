"""
Servicios de aplicacion.

Cada etapa del pipeline de guardado por lotes vive en su propio modulo:
aplanado, lectura de existentes, diff, escritura y cache.
"""
from repeater_batch.application.services.flattener import (
    Flattener,
    FlattenStrategy,
    LeafFlattenStrategy,
    RepeaterFlattenStrategy,
    join_path,
)
from repeater_batch.application.services.state_reader import ExistingStateReader
from repeater_batch.application.services.differ import diff
from repeater_batch.application.services.batch_writer import BatchWriter
from repeater_batch.application.services.cache_coordinator import CacheCoordinator
from repeater_batch.application.services.field_loader import FieldLoader
from repeater_batch.application.services.field_hooks import (
    FieldTransformChain,
    FieldTransformRule,
    WriteFilterChain,
    WriteObserverChain,
)

__all__ = [
    # Aplanado
    "Flattener",
    "FlattenStrategy",
    "LeafFlattenStrategy",
    "RepeaterFlattenStrategy",
    "join_path",
    # Lectura y diff
    "ExistingStateReader",
    "diff",
    "FieldLoader",
    # Escritura
    "BatchWriter",
    "CacheCoordinator",
    # Extension
    "FieldTransformChain",
    "FieldTransformRule",
    "WriteFilterChain",
    "WriteObserverChain",
]
