"""
Configuración de fixtures para pytest.
"""
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from repeater_batch.application.use_cases.field_update_use_cases import FieldUpdatePipeline
from repeater_batch.domain.entities.field_schema import FieldSchema
from repeater_batch.infrastructure.cache.memory_cache import InMemoryObjectCache
from repeater_batch.infrastructure.database.session import Base, create_session_factory, init_db
from repeater_batch.shared.constants.field_constants import FieldType


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def engine():
    """
    Engine SQLite en memoria compartido por todas las sesiones del test.
    """
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """Session factory sobre el engine de prueba."""
    return create_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Sesion para tests de repositorio; se hace rollback al terminar."""
    with session_factory() as session:
        yield session
        session.rollback()


@pytest.fixture
def cache() -> InMemoryObjectCache:
    return InMemoryObjectCache()


@pytest.fixture
def pipeline(session_factory, cache) -> FieldUpdatePipeline:
    """Pipeline con la configuracion por defecto."""
    return FieldUpdatePipeline(session_factory, cache)


@pytest.fixture
def items_schema() -> FieldSchema:
    """Repetidor 'items' con un sub-campo 'title'."""
    return FieldSchema(
        name="items",
        key="field_items",
        type=FieldType.REPEATER,
        sub_fields=(FieldSchema(name="title", key="field_title"),),
    )


@pytest.fixture
def nested_schema() -> FieldSchema:
    """Repetidor 'sections' con 'heading' y un repetidor anidado 'links' (label, url)."""
    return FieldSchema(
        name="sections",
        key="field_sections",
        type=FieldType.REPEATER,
        sub_fields=(
            FieldSchema(name="heading", key="field_heading"),
            FieldSchema(
                name="links",
                key="field_links",
                type=FieldType.REPEATER,
                sub_fields=(
                    FieldSchema(name="label", key="field_label"),
                    FieldSchema(name="url", key="field_url"),
                ),
            ),
        ),
    )

