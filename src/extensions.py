"""Application-wide extension singletons."""

from contextlib import contextmanager

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()
migrate = Migrate()


@contextmanager
def atomic(session):
    """Run the enclosed block as one unit of work on ``session``.

    Commits when the block finishes and rolls back on any exception, which is
    re-raised unchanged.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
