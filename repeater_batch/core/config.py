"""
Configuracion central de la libreria.
Gestiona variables de entorno y configuraciones globales.
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion.
    Lee variables de entorno y proporciona valores por defecto.
    
    - DATABASE_URL: URL SQLAlchemy del almacen de metadatos
    - CACHE_GROUP: scope de cache para los valores por campo
    - CLONE_INDEX_KEY: fila plantilla que nunca se persiste
    - USER_ID_PREFIX: prefijo que identifica IDs de usuario ("user_7")
    """
    
    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="repeater-batch")
    APP_VERSION: str = Field(default="1.0.1")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")
    
    # Base de datos
    DATABASE_URL: str = Field(default="sqlite:///./repeater_batch.db")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    
    # Campos
    CACHE_GROUP: str = Field(default="acf")
    CLONE_INDEX_KEY: str = Field(default="acfcloneindex")
    USER_ID_PREFIX: str = Field(default="user_")
    
    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/repeater_batch.log")
    
    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"
    
    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


# Instancia global de configuracion
settings = Settings()
