"""
Engine y sesiones SQLAlchemy del almacen de metadatos.

El pipeline abre una sesion por invocacion y controla commit/rollback
por su cuenta; get_db() queda para callers que escriben fuera del pipeline.
"""
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from repeater_batch.core.config import settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(url: str) -> dict:
    """
    Argumentos del engine segun la URL.
    SQLite no usa pool de conexiones; los servidores si.
    """
    args = {"echo": settings.DEBUG}

    if not url.startswith("sqlite"):
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
        })

    return args


def create_session_factory(bind: Engine) -> sessionmaker:
    """Session factory sobre un engine (sin expiracion al commit ni autoflush)."""
    return sessionmaker(bind, class_=Session, expire_on_commit=False, autoflush=False)


engine = create_engine(settings.DATABASE_URL, **_create_engine_args(settings.DATABASE_URL))

SessionLocal = create_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Sesion con commit al salir y rollback si hubo excepcion.

    Yields:
        Session: Sesion de base de datos
    """
    with SessionLocal() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db(bind: Optional[Engine] = None) -> None:
    """Crea las tablas de metadatos si no existen."""
    # Registrar modelos con Base
    from repeater_batch.infrastructure.database import models  # noqa: F401
    Base.metadata.create_all(bind or engine)


def close_db() -> None:
    """Libera las conexiones del engine global."""
    engine.dispose()
