"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any

from repeater_batch.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""
    
    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class InvalidObjectIdException(DomainException):
    """Excepcion cuando el ID de objeto no se puede resolver a un destino."""
    
    def __init__(self, object_id: Any):
        super().__init__(
            message=f"ID de objeto '{object_id}' no es valido",
            error_code="INVALID_OBJECT_ID",
            details={"object_id": repr(object_id)}
        )


class UnknownDestinationException(DomainException):
    """Excepcion cuando el tipo de objeto no tiene tabla de destino registrada."""
    
    def __init__(self, object_kind: str):
        super().__init__(
            message=f"No hay destino registrado para objetos de tipo '{object_kind}'",
            error_code="UNKNOWN_DESTINATION",
            details={"object_kind": object_kind}
        )


class InvalidFieldValueException(DomainException):
    """Excepcion cuando el valor de un campo no tiene la forma esperada."""
    
    def __init__(self, field_name: str, reason: str):
        super().__init__(
            message=f"Valor invalido para el campo '{field_name}': {reason}",
            error_code="INVALID_FIELD_VALUE",
            details={"field": field_name, "reason": reason}
        )
