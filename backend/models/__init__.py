from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    # Naive UTC, matching the DateTime columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def init_models():
    # Import models so SQLAlchemy is aware of mappings.
    from . import accounts  # noqa: F401
    from . import listings  # noqa: F401
    from . import applications  # noqa: F401
