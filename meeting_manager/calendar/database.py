"""
SQLAlchemy persistence connector and table definitions
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    Boolean,
    JSON,
    Index,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import Config
from meeting_manager.errors import StoreUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class MeetingRow(Base):
    """Meeting table"""
    __tablename__ = "meetings"

    id = Column(String(32), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    organizer = Column(String(255), index=True)
    attendees = Column(JSON, nullable=False, default=list)
    location = Column(String(255))
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    has_conflict = Column(Boolean, nullable=False, default=False)
    conflict_details = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Index for faster range queries
    __table_args__ = (Index("ix_meetings_start_end", "start_time", "end_time"),)


class HistoryRow(Base):
    """Conversation history entries, ordered by id within a session"""
    __tablename__ = "conversation_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text)
    tool_call = Column(JSON)
    tool_call_id = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class ConflictRow(Base):
    """Append-only log of mediated conflict scenarios"""
    __tablename__ = "conflict_records"

    id = Column(String(32), primary_key=True)
    scenario = Column(Text, nullable=False)
    resolution = Column(Text, nullable=False)
    intent = Column(String(50), nullable=False, default="advice")
    conflict_type = Column(String(50), nullable=False, default="other")
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)


class Database:
    """Lazily connected database handle.

    ``connect()`` is idempotent and safe to call on every request: the engine
    and session factory are created once and reused for the process lifetime.
    """

    def __init__(self, url: str = None):
        self.url = url or Config.DATABASE_URL
        self._engine = None
        self._session_factory = None
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict:
        options = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                options["poolclass"] = StaticPool
        return options

    def connect(self) -> "Database":
        if self._engine is not None:
            logger.debug("=> Using existing database connection")
            return self

        with self._lock:
            if self._engine is not None:
                return self

            logger.info("=> Creating new database connection")
            try:
                engine = create_engine(self.url, **self._engine_options())
                Base.metadata.create_all(engine)
            except SQLAlchemyError as e:
                logger.error(f"Error connecting to database: {e}")
                raise StoreUnavailable("Could not connect to the database") from e

            self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
            self._engine = engine
            logger.info("=> Database connected successfully")
        return self

    @contextmanager
    def session(self):
        """Transactional session scope; database failures surface as StoreUnavailable"""
        self.connect()
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database operation failed: {e}")
            raise StoreUnavailable("Database operation failed") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Check the connection with a trivial query"""
        try:
            with self.session() as session:
                session.execute(select(func.count()).select_from(MeetingRow))
            return True
        except StoreUnavailable:
            return False

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection closed")
