from sqlmodel import SQLModel, create_engine

from app.core.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)


def create_db_models():
    # Import models so they register on SQLModel.metadata
    from app.db import models  # noqa: F401
    SQLModel.metadata.create_all(engine)
