from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from config import get_settings


def make_engine(database_url: str):
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url)


engine = make_engine(get_settings().database_url)


def create_db_and_tables(bind=None):
    # Import so StorageEntry registers on SQLModel.metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
