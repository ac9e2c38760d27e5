"""
Entidad de dominio: ObjectRef (referencia al objeto dueño de los metadatos).

Se construye una sola vez en el borde del pipeline a partir del ID crudo:
- numerico (42 o "42")      -> PostRef(42)
- "user_<n>"                -> UserRef(n)
- cualquier otro texto      -> OptionRef(bucket)

Dentro del pipeline nunca se vuelve a inspeccionar la forma del ID.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from repeater_batch.shared.constants.field_constants import ObjectKind, PATH_SEPARATOR
from repeater_batch.shared.exceptions.domain import InvalidObjectIdException


DEFAULT_USER_PREFIX = "user_"


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


class ObjectRef(ABC):
    """
    Variante etiquetada: PostRef | UserRef | OptionRef.

    Cada variante sabe que clave guardar en su tabla para la ruta de un
    campo, y que ID usar para las claves de cache.
    """

    kind: ObjectKind

    @property
    def object_id(self) -> Optional[int]:
        """ID numerico del objeto, o None si el destino no tiene columna de objeto."""
        return None

    @property
    @abstractmethod
    def cache_id(self) -> str:
        """Identificador usado en las claves de cache (forma original del ID)."""

    def meta_key(self, path: str) -> str:
        """Clave guardada en la tabla para la ruta de un campo."""
        return path

    @classmethod
    def parse(cls, raw: Any, user_prefix: str = DEFAULT_USER_PREFIX) -> "ObjectRef":
        """
        Construye la referencia a partir del ID crudo recibido del caller.

        Raises:
            InvalidObjectIdException: Si el ID esta vacio, es cero/negativo,
                o es un usuario sin ID numerico.
        """
        if isinstance(raw, ObjectRef):
            return raw

        post_id = _positive_int(raw)
        if post_id is not None:
            return PostRef(post_id)

        if not isinstance(raw, str) or not raw.strip():
            raise InvalidObjectIdException(raw)

        raw = raw.strip()
        if raw.startswith(user_prefix):
            user_id = _positive_int(raw[len(user_prefix):])
            if user_id is None:
                raise InvalidObjectIdException(raw)
            return UserRef(user_id, prefix=user_prefix)

        if raw.lstrip("-").isdigit():
            # Numerico pero no positivo
            raise InvalidObjectIdException(raw)

        return OptionRef(raw)


@dataclass(frozen=True)
class PostRef(ObjectRef):
    """Objeto tipo post: metadatos en la tabla postmeta."""

    id: int
    kind = ObjectKind.POST

    @property
    def object_id(self) -> int:
        return self.id

    @property
    def cache_id(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class UserRef(ObjectRef):
    """Objeto tipo usuario: metadatos en la tabla usermeta."""

    id: int
    prefix: str = DEFAULT_USER_PREFIX
    kind = ObjectKind.USER

    @property
    def object_id(self) -> int:
        return self.id

    @property
    def cache_id(self) -> str:
        return f"{self.prefix}{self.id}"


@dataclass(frozen=True)
class OptionRef(ObjectRef):
    """
    Bucket de opciones: no hay columna de objeto, el bucket va en la clave.

    La ruta "items" se guarda como "<bucket>_items"; su revision, como en
    cualquier destino, es esa clave con "_" delante: "_<bucket>_items".
    Un campo "_items" queda en "<bucket>__items", sin chocar con la revision.
    """

    bucket: str
    kind = ObjectKind.OPTION

    @property
    def cache_id(self) -> str:
        return self.bucket

    def meta_key(self, path: str) -> str:
        return f"{self.bucket}{PATH_SEPARATOR}{path}"
