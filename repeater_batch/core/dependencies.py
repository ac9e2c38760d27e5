"""
Construccion de dependencias del pipeline.
"""
from typing import Optional

from repeater_batch.application.services.field_hooks import FieldTransformChain, WriteFilterChain, WriteObserverChain
from repeater_batch.application.use_cases.field_update_use_cases import FieldUpdatePipeline
from repeater_batch.infrastructure.cache.memory_cache import InMemoryObjectCache
from repeater_batch.infrastructure.database.session import SessionLocal


# Cache compartida por todas las instancias del proceso
_object_cache = InMemoryObjectCache()


def get_object_cache() -> InMemoryObjectCache:
    """
    Dependencia para obtener la cache de objetos del proceso.
    
    Returns:
        InMemoryObjectCache: Instancia compartida
    """
    return _object_cache


def get_field_update_pipeline(
    transforms: Optional[FieldTransformChain] = None,
    write_filters: Optional[WriteFilterChain] = None,
    write_observers: Optional[WriteObserverChain] = None,
) -> FieldUpdatePipeline:
    """
    Dependencia para obtener el pipeline de guardado.
    
    Args:
        transforms: Transformaciones por campo (key/name/type)
        write_filters: Filtros de veto previos a la escritura
        write_observers: Observadores posteriores a cada escritura
        
    Returns:
        FieldUpdatePipeline: Pipeline sobre la base de datos configurada
    """
    return FieldUpdatePipeline(
        SessionLocal,
        get_object_cache(),
        transforms=transforms,
        write_filters=write_filters,
        write_observers=write_observers,
    )
