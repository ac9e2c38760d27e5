"""
Caso de uso: guardar el valor de un campo (simple o repetidor) por lotes.

Flujo por invocacion:
    ObjectRef -> aplanado -> lectura de existentes -> diff
    -> invalidar cache -> INSERT / UPDATE / DELETE -> commit -> repoblar cache

Todo ocurre en una transaccion. Si algo falla se hace rollback completo,
la cache queda solo invalidada y se retorna un resultado con success=False.

Se asume que nunca hay dos escrituras simultaneas sobre el mismo objeto;
esa exclusion la debe garantizar el caller.
"""
from typing import Any, Callable, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from repeater_batch.application.dto.update_dto import UpdateResultDTO
from repeater_batch.application.services.batch_writer import BatchWriter
from repeater_batch.application.services.cache_coordinator import CacheCoordinator
from repeater_batch.application.services.differ import diff
from repeater_batch.application.services.field_hooks import FieldTransformChain, WriteFilterChain, WriteObserverChain
from repeater_batch.application.services.field_loader import FieldLoader
from repeater_batch.application.services.flattener import Flattener, FlattenStrategy
from repeater_batch.application.services.state_reader import ExistingStateReader
from repeater_batch.core.config import settings
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.domain.entities.object_ref import ObjectRef
from repeater_batch.domain.repositories.object_cache import IObjectCache
from repeater_batch.infrastructure.database.destinations import DestinationRegistry
from repeater_batch.infrastructure.repositories.meta_repository import MetaRepository
from repeater_batch.shared.exceptions.base import AppException
from repeater_batch.shared.exceptions.domain import DomainException


class FieldUpdatePipeline:
    """
    Orquestador del guardado por lotes para un objeto.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache: IObjectCache,
        *,
        destinations: Optional[DestinationRegistry] = None,
        transforms: Optional[FieldTransformChain] = None,
        write_filters: Optional[WriteFilterChain] = None,
        write_observers: Optional[WriteObserverChain] = None,
        strategies: Optional[Sequence[FlattenStrategy]] = None,
        user_prefix: Optional[str] = None,
        clone_index_key: Optional[str] = None,
        cache_group: Optional[str] = None,
    ) -> None:
        self.session_factory = session_factory
        self.destinations = destinations or DestinationRegistry()
        self.write_filters = write_filters or WriteFilterChain()
        self.write_observers = write_observers or WriteObserverChain()
        self.user_prefix = user_prefix or settings.USER_ID_PREFIX
        self.cache = CacheCoordinator(cache, cache_group)
        self.flattener = Flattener(
            strategies=strategies,
            transforms=transforms,
            clone_index_key=clone_index_key,
        )

    def _resolve(self, object_id: Any) -> ObjectRef:
        ref = ObjectRef.parse(object_id, self.user_prefix)
        self.destinations.resolve(ref.kind)
        return ref

    def _failure(self, object_id: Any, schema: FieldSchema, error: AppException) -> UpdateResultDTO:
        return UpdateResultDTO(
            success=False,
            object_id=str(object_id),
            field_key=getattr(schema, "key", None),
            **error.to_dict(),
        )

    def update(self, value: Any, object_id: Any, schema: FieldSchema) -> UpdateResultDTO:
        """
        Guarda el valor de un campo.

        Args:
            value: Lista de filas (repetidor) o valor simple. Un valor vacio
                en un repetidor significa "sin filas" y borra las guardadas.
            object_id: 42 / "42" (post), "user_7" (usuario) u otro texto (opciones)
            schema: Esquema del campo

        Returns:
            UpdateResultDTO: Conteos de la escritura o el error
        """
        try:
            ref = self._resolve(object_id)
        except DomainException as e:
            logger.error(f"Guardado rechazado para '{object_id}': {e.message}")
            return self._failure(object_id, schema, e)

        with self.session_factory() as session:
            store = MetaRepository(session, self.destinations)
            reader = ExistingStateReader(store)
            writer = BatchWriter(store, self.write_filters, self.write_observers)

            try:
                flat = self.flattener.flatten(
                    value,
                    schema,
                    ref,
                    previous_count=lambda path: reader.previous_count(ref, path),
                )
                existing = reader.fetch_existing(ref, flat.keys)
                plan = diff(flat.records, existing)

                inserted = updated = deleted = 0
                if plan.has_writes or flat.stale_keys:
                    self.cache.invalidate(ref)
                    inserted = writer.apply_insert(ref, plan.to_insert)
                    updated = writer.apply_update(ref, plan.to_update)
                    deleted = writer.apply_delete(ref, flat.stale_keys)
                    session.commit()
            except AppException as e:
                session.rollback()
                logger.error(f"Error guardando '{schema.name}' en {ref.kind.value} {ref.cache_id}: {e.message}")
                return self._failure(object_id, schema, e)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error de base de datos guardando '{schema.name}' en {ref.kind.value} {ref.cache_id}: {e}")
                return self._failure(object_id, schema, AppException(str(e), error_code="PERSISTENCE_ERROR"))
            except Exception as e:
                session.rollback()
                logger.exception(f"Error inesperado guardando '{schema.name}' en {ref.kind.value} {ref.cache_id}")
                return self._failure(object_id, schema, AppException(str(e)))

        vetoed = set(writer.vetoed)
        self.cache.repopulate(ref, [r for r in flat.records if r.meta_key not in vetoed])
        self.cache.forget(ref, flat.stale_keys)

        logger.info(
            f"Campo '{schema.name}' guardado en {ref.kind.value} {ref.cache_id}: "
            f"insert={inserted}, update={updated}, sin_cambios={len(plan.noop)}, "
            f"delete={deleted}, vetados={len(vetoed)}"
        )
        return UpdateResultDTO(
            success=True,
            object_id=str(object_id),
            field_key=schema.key,
            inserted=inserted,
            updated=updated,
            unchanged=len(plan.noop),
            deleted=deleted,
            vetoed=list(writer.vetoed),
            skipped_subtrees=flat.errors,
        )

    def load(self, object_id: Any, schema: FieldSchema) -> Any:
        """
        Lee el valor de un campo (cache primero, luego almacen).

        Raises:
            InvalidObjectIdException: Si el ID no es valido
            UnknownDestinationException: Si el tipo de objeto no tiene tabla
        """
        ref = self._resolve(object_id)
        with self.session_factory() as session:
            loader = FieldLoader(MetaRepository(session, self.destinations), self.cache)
            return loader.load_field(ref, schema)

    def load_object_meta(self, object_id: Any) -> dict:
        """Vista compuesta de todos los metadatos del objeto."""
        ref = self._resolve(object_id)
        with self.session_factory() as session:
            loader = FieldLoader(MetaRepository(session, self.destinations), self.cache)
            return loader.load_object_meta(ref)
