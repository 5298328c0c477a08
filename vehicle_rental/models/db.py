from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
