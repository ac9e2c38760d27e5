"""
Destinos de persistencia por tipo de objeto.

Cada tipo de objeto (post, usuario, opcion) escribe en exactamente una
tabla. El registro se arma explicitamente; un tipo sin tabla registrada
falla antes de cualquier escritura.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import Column, Table

from repeater_batch.infrastructure.database.models import PostMetaModel, UserMetaModel, OptionModel
from repeater_batch.shared.constants.field_constants import ObjectKind
from repeater_batch.shared.exceptions.domain import UnknownDestinationException


@dataclass(frozen=True)
class MetaTable:
    """
    Describe las columnas de una tabla clave/valor.

    object_column es None para tablas sin columna de objeto (opciones).
    """

    table: Table
    id_column: str
    key_column: str
    value_column: str
    object_column: Optional[str] = None

    @property
    def id(self) -> Column:
        return self.table.c[self.id_column]

    @property
    def key(self) -> Column:
        return self.table.c[self.key_column]

    @property
    def value(self) -> Column:
        return self.table.c[self.value_column]

    @property
    def object(self) -> Optional[Column]:
        return self.table.c[self.object_column] if self.object_column else None


POST_META = MetaTable(
    table=PostMetaModel.__table__,
    id_column="meta_id",
    key_column="meta_key",
    value_column="meta_value",
    object_column="post_id",
)

USER_META = MetaTable(
    table=UserMetaModel.__table__,
    id_column="umeta_id",
    key_column="meta_key",
    value_column="meta_value",
    object_column="user_id",
)

OPTIONS = MetaTable(
    table=OptionModel.__table__,
    id_column="option_id",
    key_column="option_name",
    value_column="option_value",
)


class DestinationRegistry:
    """
    Mapa tipo de objeto -> tabla de destino.
    """

    def __init__(self, tables: Optional[Dict[ObjectKind, MetaTable]] = None):
        self._tables: Dict[ObjectKind, MetaTable] = dict(tables) if tables is not None else {
            ObjectKind.POST: POST_META,
            ObjectKind.USER: USER_META,
            ObjectKind.OPTION: OPTIONS,
        }

    def resolve(self, kind: ObjectKind) -> MetaTable:
        """
        Obtiene la tabla para un tipo de objeto.

        Raises:
            UnknownDestinationException: Si el tipo no tiene tabla registrada
        """
        table = self._tables.get(kind)
        if table is None:
            raise UnknownDestinationException(getattr(kind, "value", str(kind)))
        return table

    def register(self, kind: ObjectKind, table: MetaTable) -> None:
        """Registra (o reemplaza) la tabla de un tipo de objeto."""
        self._tables[kind] = table
