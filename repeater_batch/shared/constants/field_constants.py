"""
Constantes relacionadas con campos y destinos de metadatos.
"""
from enum import Enum


class FieldType(str, Enum):
    """Tipos de campo soportados por el aplanador."""
    SCALAR = "scalar"
    REPEATER = "repeater"


class ObjectKind(str, Enum):
    """Tipos de objeto que pueden recibir metadatos."""
    POST = "post"
    USER = "user"
    OPTION = "option"


class WriteOperation(str, Enum):
    """Operaciones de escritura expuestas a filtros y observadores."""
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


# Prefijo de la clave de revision ("_" + ruta)
REVISION_PREFIX = "_"

# Separador usado al construir rutas anidadas: padre_indice_nombre
PATH_SEPARATOR = "_"

# Atributos del esquema que admiten transformaciones, en orden de aplicacion
TRANSFORM_ATTRIBUTES = ("key", "name", "type")
