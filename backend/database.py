"""
Database Configuration Module

This module owns the process-wide SQLAlchemy engine for the ledger service.
It uses SQLAlchemy for ORM (Object-Relational Mapping) with PostgreSQL as the
production database.

The module includes:
- Explicit engine initialisation and disposal (driven by the app lifespan)
- Session management and the per-request session dependency
- The scoped transaction helper used by every mutation
- Base model class definition
- Soft delete filter implementation
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, with_loader_criteria, declarative_base

import config

logger = logging.getLogger(__name__)

# Base is the declarative base class that our ORM models will inherit from
Base = declarative_base()

# Both are populated by init_engine() and cleared by dispose_engine()
engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def _enable_sqlite_immediate_transactions(sqlite_engine: Engine) -> None:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    SQLite ignores SELECT ... FOR UPDATE, so the write lock has to be taken
    when the transaction begins. This serialises code allocation the same way
    the row locks do on PostgreSQL.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_engine(url: Optional[str] = None) -> Engine:
    """
    Create the process-wide engine and bind the session factory to it.

    Args:
        url: SQLAlchemy database URL, defaults to config.DATABASE_URL

    Returns:
        Engine: the newly created engine
    """
    global engine
    if engine is not None:
        dispose_engine()

    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=config.DB_ECHO,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _enable_sqlite_immediate_transactions(engine)
    else:
        engine = create_engine(
            url,
            echo=config.DB_ECHO,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )

    SessionLocal.configure(bind=engine)
    logger.info(f"Database engine initialised for {engine.url.render_as_string(hide_password=True)}")
    return engine


def dispose_engine() -> None:
    """Release every pooled connection and forget the engine."""
    global engine
    if engine is None:
        return
    engine.dispose()
    logger.info("Database engine disposed")
    engine = None
    SessionLocal.configure(bind=None)


def init_db() -> None:
    """
    Create all tables known to the metadata and seed the ledger sequences.

    Production deployments run the Alembic migrations instead; this is used by
    local development and the test suite.
    """
    import models  # noqa: F401  registers every table on Base.metadata
    from crud.sequences import seed_sequences

    if engine is None:
        raise RuntimeError("init_engine() must be called before init_db()")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        with transaction(db):
            seed_sequences(db)
    finally:
        db.close()


@event.listens_for(Session, "do_orm_execute")
def add_soft_delete_filter(execute_state):
    """
    Event listener that automatically filters out "soft-deleted" records.

    This function adds a filter to all SELECT queries to exclude records
    where the 'deleted_at' field is not NULL.

    Args:
        execute_state: The current execution state of the query
    """
    if (
        execute_state.is_select
        and not execute_state.is_relationship_load
    ):
        for entity in execute_state.statement.column_descriptions:
            entity_type = entity.get('type')
            if isinstance(entity_type, type) and hasattr(entity_type, 'deleted_at'):
                execute_state.statement = execute_state.statement.options(
                    with_loader_criteria(
                        entity_type,
                        lambda cls: cls.deleted_at.is_(None),
                        include_aliases=True
                    )
                )


@contextmanager
def transaction(db: Session):
    """
    Scoped transaction: commit on the success exit, roll back on any error.

    Every ledger mutation runs inside exactly one of these so a document and
    its journal postings become visible together or not at all.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# Dependency to get database session
def get_db():
    """
    Dependency function that provides a database session.

    This function creates a new database session for each request and ensures
    that the session is properly closed after the request is completed.

    Yields:
        Session: A SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
