"""
Excepciones relacionadas con la escritura en el almacen de metadatos.
"""
from repeater_batch.shared.exceptions.base import AppException


class PersistenceException(AppException):
    """Excepción base para errores de persistencia."""
    
    def __init__(self, message: str, error_code: str = "PERSISTENCE_ERROR", details=None):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class PartialBatchFailureException(PersistenceException):
    """
    Excepcion cuando el almacen reporta menos filas afectadas que las enviadas.
    
    El lote se considera fallido completo: nunca se reconoce parcialmente.
    """
    
    def __init__(self, operation: str, submitted: int, affected: int, error_code: str = "PARTIAL_BATCH_FAILURE"):
        super().__init__(
            message=(
                f"Lote '{operation}' incompleto: "
                f"{affected} filas afectadas de {submitted} enviadas"
            ),
            error_code=error_code,
            details={"operation": operation, "submitted": submitted, "affected": affected}
        )
        self.operation = operation
        self.submitted = submitted
        self.affected = affected


class StaleReadRaceException(PartialBatchFailureException):
    """
    Excepcion cuando las filas leidas antes del diff ya no existen al escribir.
    
    Solo puede ocurrir si otro escritor toco el mismo objeto; el caller
    puede reintentar la operacion completa.
    """
    
    retryable = True
    
    def __init__(self, operation: str, submitted: int, affected: int):
        super().__init__(operation, submitted, affected, error_code="STALE_READ_RACE")
