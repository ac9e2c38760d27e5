"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from repeater_batch.infrastructure.database.models import (
    PostMetaModel,
    UserMetaModel,
    OptionModel
)
