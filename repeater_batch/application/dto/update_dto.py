"""
DTOs de resultado del pipeline de escritura.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UpdateResultDTO(BaseModel):
    """
    Resultado agregado de una invocacion.
    
    success=False implica que no quedo nada escrito (rollback completo).
    """
    
    success: bool
    object_id: str
    field_key: Optional[str] = None
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    vetoed: List[str] = Field(default_factory=list)
    skipped_subtrees: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False
    
    @property
    def written(self) -> int:
        """Filas insertadas + actualizadas."""
        return self.inserted + self.updated
