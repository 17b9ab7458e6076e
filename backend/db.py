from contextlib import contextmanager

from flask import current_app
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from errors import StorageError
from models import Base, init_models


class Database:
    """Engine + session factory handed to the app instead of module globals."""

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith('sqlite'):
            engine_kwargs.setdefault('connect_args', {'check_same_thread': False})
        self.engine = create_engine(url, pool_pre_ping=True, future=True, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    def create_all(self):
        init_models()
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def session(self):
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError() from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def is_integrity_error(exc) -> bool:
    """True when a ``StorageError`` wraps a unique or foreign-key violation."""
    return isinstance(exc, StorageError) and isinstance(exc.__cause__, IntegrityError)


def get_db() -> Database:
    return current_app.extensions['database']
