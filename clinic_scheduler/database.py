from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from .core.config import settings


def build_engine(db_url: str, echo: bool = False):
    # Choose engine options based on database scheme
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(bind=None):
    # Register every table on the metadata before creating it
    from .db import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
