from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from phoneshop.core.config import settings


class Base(DeclarativeBase):
    pass


is_sqlite = settings.database_url.startswith("sqlite")
is_memory = is_sqlite and settings.database_url in {"sqlite://", "sqlite:///:memory:"}

connect_args = (
    {"check_same_thread": False}
    if is_sqlite
    else {"sslmode": "require"}
)

engine_kwargs = {"poolclass": StaticPool} if is_memory else {
    "pool_pre_ping": not is_sqlite,
    "pool_recycle": 1800 if not is_sqlite else -1,
}

engine = create_engine(settings.database_url, connect_args=connect_args, **engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db() -> None:
    # Alembic owns the schema on Postgres; SQLite dev/test databases are created in place.
    import phoneshop.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
