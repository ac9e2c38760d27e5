"""
Lectura de campos desde la cache o el almacen.

Reconstruye el valor de un campo a partir de las claves planas:
el conteo del repetidor indica cuantas filas leer, y cada sub-campo se
busca por su ruta.
"""
from typing import Any, Dict, Optional

from repeater_batch.application.services.cache_coordinator import CacheCoordinator, composite_scope
from repeater_batch.application.services.flattener import join_path
from repeater_batch.application.services.state_reader import as_count
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.repositories.meta_store import IMetaStore
from repeater_batch.shared.utils.value_codec import unserialize


class FieldLoader:
    """Lecturas por clave con cache delante del almacen."""

    def __init__(self, store: IMetaStore, cache: CacheCoordinator):
        self.store = store
        self.cache = cache

    def load_value(self, ref: ObjectRef, meta_key: str, default: Any = None) -> Any:
        """
        Obtiene el valor de una clave guardada (ref.meta_key de la ruta).

        Las claves ausentes no se guardan en cache.
        """
        cache_key = self.cache.field_key(ref, meta_key)
        found, value = self.cache.cache.get(self.cache.group, cache_key)
        if found:
            return value

        rows = self.store.select(ref, [meta_key])
        if not rows:
            return default

        value = unserialize(rows[0][2])
        self.cache.cache.set(self.cache.group, cache_key, value)
        return value

    def load_field(self, ref: ObjectRef, schema: FieldSchema, path: Optional[str] = None) -> Any:
        """
        Reconstruye el valor de un campo.

        Returns:
            Valor simple, o lista de filas {clave_sub_campo: valor} para repetidores
        """
        path = path or schema.name
        if not schema.is_repeater:
            return self.load_value(ref, ref.meta_key(path))

        rows = []
        for index in range(as_count(self.load_value(ref, ref.meta_key(path), 0))):
            rows.append({
                sub_field.key: self.load_field(ref, sub_field, join_path(path, index, sub_field.name))
                for sub_field in schema.sub_fields
            })
        return rows

    def load_object_meta(self, ref: ObjectRef) -> Dict[str, Any]:
        """
        Vista compuesta de todos los metadatos del objeto.

        Se guarda en la entrada que invalidate() descarta antes de cada escritura.
        """
        scope = composite_scope(ref)
        found, meta = self.cache.cache.get(scope, ref.cache_id)
        if found:
            return meta

        meta = {}
        for _, meta_key, raw_value in self.store.select_all(ref):
            meta.setdefault(meta_key, unserialize(raw_value))
        self.cache.cache.set(scope, ref.cache_id, meta)
        return meta
