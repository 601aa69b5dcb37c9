"""
Database initialization and connection management.
"""

import logging

from sqlalchemy import create_engine, event, Index
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finsight.config import settings
from finsight.ingest.schema import Base, Transaction, Account, PersonaRecord

logger = logging.getLogger(__name__)


def get_engine(database_url: str = None):
    """Get SQLAlchemy engine for database connection."""
    if database_url is None:
        database_url = settings.database_url

    kwargs = {'echo': False}
    if database_url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if database_url in ('sqlite://', 'sqlite:///:memory:'):
            # Share one in-memory database across sessions
            kwargs['poolclass'] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if engine.dialect.name == 'sqlite':
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


_session_factory = None


def get_session(engine=None):
    """Get SQLAlchemy session."""
    global _session_factory
    if engine is not None:
        return sessionmaker(bind=engine)()

    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine())
    return _session_factory()


def create_indexes(engine):
    """Create indexes for common query patterns."""

    # Transaction indexes
    Index('idx_transactions_account', Transaction.account_id).create(engine, checkfirst=True)
    Index('idx_transactions_date', Transaction.date).create(engine, checkfirst=True)
    Index('idx_transactions_category', Transaction.category_primary).create(engine, checkfirst=True)

    # Account indexes
    Index('idx_accounts_user', Account.user_id).create(engine, checkfirst=True)
    Index('idx_accounts_type', Account.type).create(engine, checkfirst=True)

    # Persona indexes
    Index('idx_personas_user', PersonaRecord.user_id).create(engine, checkfirst=True)
    Index('idx_personas_assigned', PersonaRecord.assigned_at).create(engine, checkfirst=True)


def init_database(database_url: str = None, drop_existing: bool = False):
    """
    Initialize database schema.

    Args:
        database_url: SQLAlchemy URL (uses configured default if None)
        drop_existing: If True, drop all tables before creating

    Returns:
        SQLAlchemy engine
    """
    engine = get_engine(database_url)

    if drop_existing:
        logger.info("Dropping existing tables")
        Base.metadata.drop_all(engine)

    Base.metadata.create_all(engine)
    create_indexes(engine)

    logger.info("Database initialized", extra={'database_url': database_url or settings.database_url})

    return engine


if __name__ == "__main__":
    init_database(drop_existing=True)
