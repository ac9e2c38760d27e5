"""
Cache en memoria del proceso.

Caracteristicas:
- Valores agrupados por scope (p.ej. "acf" o "post_meta")
- Lock unico para que get/set/delete sean atomicos entre threads
- Sin expiracion: la coherencia la maneja el CacheCoordinator
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Tuple

from repeater_batch.domain.repositories.object_cache import IObjectCache


class InMemoryObjectCache(IObjectCache):
    """Implementacion de IObjectCache sobre dicts protegidos por un lock."""

    def __init__(self) -> None:
        self._groups: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, scope: str, key: str) -> Tuple[bool, Any]:
        with self._lock:
            group = self._groups.get(scope, {})
            if key in group:
                return True, group[key]
            return False, None

    def set(self, scope: str, key: str, value: Any) -> None:
        with self._lock:
            self._groups.setdefault(scope, {})[key] = value

    def delete(self, scope: str, key: str) -> bool:
        with self._lock:
            group = self._groups.get(scope)
            if group is None or key not in group:
                return False
            del group[key]
            return True

    def clear(self) -> int:
        """Vacia la cache completa. Retorna el numero de entradas eliminadas."""
        with self._lock:
            total = sum(len(group) for group in self._groups.values())
            self._groups.clear()
            return total
