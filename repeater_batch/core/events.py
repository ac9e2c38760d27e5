"""
Manejadores de inicio y cierre de la libreria.
"""
from loguru import logger

from repeater_batch.core.config import settings
from repeater_batch.infrastructure.database.session import init_db, close_db


_file_sink_id = None


def configure_logging() -> None:
    """Agrega el archivo de log rotativo (una sola vez)."""
    global _file_sink_id
    if _file_sink_id is not None:
        return
    _file_sink_id = logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level="DEBUG" if settings.is_development else settings.LOG_LEVEL
    )


def startup(bind=None) -> None:
    """Inicializa recursos: logging y tablas de metadatos."""
    try:
        logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Entorno: {settings.ENVIRONMENT}")
        
        configure_logging()
        
        # Crear tablas si no existen
        init_db(bind)
        logger.info("Base de datos inicializada")
        
        logger.success("Libreria iniciada correctamente")
    except Exception as e:
        logger.error(f"Error durante startup: {e}")
        logger.exception("Detalle del error:")
        raise


def shutdown() -> None:
    """Libera recursos al cerrar."""
    global _file_sink_id
    logger.info("Cerrando...")
    
    close_db()
    logger.info("Conexiones de base de datos cerradas")
    
    if _file_sink_id is not None:
        logger.remove(_file_sink_id)
        _file_sink_id = None
