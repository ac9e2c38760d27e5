"""
Excepcion raiz de la libreria.

Cada error lleva un codigo estable (error_code) que el pipeline copia al
resultado, y un indicador de si el caller puede reintentar la invocacion.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepcion base: todas las excepciones de repeater_batch heredan de aqui.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: Mensaje legible
            error_code: Codigo estable (INVALID_OBJECT_ID, STALE_READ_RACE, ...)
            details: Datos del caso (claves, conteos, tipo de objeto)
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Campos del error tal como se copian al resultado de la invocacion."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }
