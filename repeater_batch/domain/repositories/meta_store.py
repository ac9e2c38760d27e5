"""
Interfaz del almacen plano de metadatos.
Define el contrato que debe cumplir cualquier implementación.
"""
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Sequence, Tuple

from repeater_batch.domain.entities.object_ref import ObjectRef


# (id, clave guardada, valor serializado)
StoredRow = Tuple[Any, str, str]


class IMetaStore(ABC):
    """
    Interfaz del almacen clave/valor por objeto.
    Todas las operaciones quedan acotadas al par (objeto, clave).
    """
    
    @abstractmethod
    def select(self, ref: ObjectRef, keys: Iterable[str]) -> List[StoredRow]:
        """
        Obtiene las filas existentes para un conjunto de claves en una sola consulta.
        
        Args:
            ref: Objeto dueño de los metadatos
            keys: Claves guardadas a buscar (ref.meta_key de cada ruta)
            
        Returns:
            List[StoredRow]: Filas ordenadas por ID (pueden repetirse claves)
        """
        pass
    
    @abstractmethod
    def select_all(self, ref: ObjectRef) -> List[StoredRow]:
        """
        Obtiene todas las filas del objeto.
        
        Args:
            ref: Objeto dueño de los metadatos
            
        Returns:
            List[StoredRow]: Filas ordenadas por ID
        """
        pass
    
    @abstractmethod
    def insert_batch(self, ref: ObjectRef, rows: Sequence[Tuple[str, str]]) -> int:
        """
        Inserta varias filas (clave, valor serializado) en una sola sentencia.
        
        Returns:
            int: Numero de filas insertadas
        """
        pass
    
    @abstractmethod
    def update_batch(self, ref: ObjectRef, rows: Sequence[Tuple[str, str]]) -> int:
        """
        Actualiza varias claves en una sola sentencia (CASE por clave).
        
        Returns:
            int: Numero de filas actualizadas
        """
        pass
    
    @abstractmethod
    def delete_one(self, ref: ObjectRef, key: str) -> bool:
        """
        Elimina una clave del objeto.
        
        Returns:
            bool: True si se elimino al menos una fila
        """
        pass
