from typing import Iterator
from fastapi import Request
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str) -> Engine:
    """Build the engine with options suited to the database dialect."""
    engine_kwargs = {}
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        # Base en mémoire: une seule connexion partagée
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True

    logger.info(f"Creating database engine for {url.drivername}")
    return create_engine(database_url, **engine_kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # Les modèles doivent être importés avant create_all
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ready: {list(Base.metadata.tables.keys())}")


def get_session(request: Request) -> Iterator[Session]:
    """Yield a session for the current request and always close it."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
