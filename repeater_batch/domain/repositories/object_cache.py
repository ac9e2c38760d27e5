"""
Interfaz de la cache de objetos.
"""
from abc import ABC, abstractmethod
from typing import Any, Tuple


class IObjectCache(ABC):
    """
    Cache clave/valor agrupada por scope.
    Las implementaciones deben ser seguras para get/set concurrentes.
    """
    
    @abstractmethod
    def get(self, scope: str, key: str) -> Tuple[bool, Any]:
        """Retorna (encontrado, valor)."""
        pass
    
    @abstractmethod
    def set(self, scope: str, key: str, value: Any) -> None:
        """Guarda un valor."""
        pass
    
    @abstractmethod
    def delete(self, scope: str, key: str) -> bool:
        """Elimina un valor. Retorna True si existia."""
        pass
