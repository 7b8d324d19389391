import logging
from contextlib import contextmanager
from typing import Iterator, List

from pydantic import ValidationError
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from demo.config import settings
from demo.errors import ConstraintViolation, InvalidArgument, StorageUnavailable
from demo.schemas import Message

logger = logging.getLogger(__name__)

# check_same_thread=False lets SQLite connections move between FastAPI's worker threads
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DB_ECHO,
)

# Create SessionLocal class for creating database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()


def init_db() -> None:
    """
    Initialize the database by creating missing tables.
    Called during application startup; existing tables are left alone.
    """
    logger.debug(f"Initializing database with URL: {settings.DATABASE_URL}")
    try:
        # Import models to register them with Base.metadata
        from demo.models import MessageRow  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def check_db_health() -> bool:
    """
    Check if the database is reachable and schema is applied.

    Returns:
        True if DB is healthy and the messages table exists, False otherwise.
    """
    logger.debug("Checking database health...")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            if not inspect(conn).has_table("messages"):
                logger.error("Database schema not applied: 'messages' table not found")
                return False
        logger.debug("Database health check passed")
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


# =============================================================================
# Message Store
# =============================================================================

class MessageStore:
    """
    Owns the messages table: one insert and two read queries.

    The session factory (and the engine/pool behind it) is supplied by the
    caller. Each operation runs in its own short-lived session. Database
    errors are translated to the MessageError taxonomy; nothing is retried.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as e:
            db.rollback()
            logger.info(f"Constraint violation during {action}: {e.orig}")
            raise ConstraintViolation(f"{action} rejected: message id already exists") from e
        except (DataError, ProgrammingError, InterfaceError) as e:
            db.rollback()
            logger.error(f"Invalid argument during {action}: {e.orig}")
            raise InvalidArgument(f"{action} rejected by database: {e.orig}") from e
        except OperationalError as e:
            db.rollback()
            logger.error(f"Database unavailable during {action}: {e.orig}")
            raise StorageUnavailable(f"{action} failed: database unavailable") from e
        finally:
            db.close()

    def insert(self, message_id: str, text: str) -> None:
        """
        Insert one message row. No upsert: an existing id raises
        ConstraintViolation and leaves the stored row untouched. An empty
        or over-long id, or empty text, raises InvalidArgument.
        """
        from demo.models import MessageRow

        logger.info(f"Inserting message: id={message_id}")
        logger.debug(f"Message text: {text}")

        # Rows must read back as valid Message records; SQLite checks neither rule
        try:
            record = Message(id=message_id, text=text)
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            logger.warning(f"Invalid argument for insert of message {message_id!r}: {reasons}")
            raise InvalidArgument(f"insert rejected: {reasons}") from e
        if not record.id:
            logger.warning("Invalid argument for insert: empty message id")
            raise InvalidArgument("insert rejected: message id must not be empty")

        with self._session(f"insert of message {record.id!r}") as db:
            db.add(MessageRow(id=record.id, text=record.text))
            db.commit()

        logger.info(f"Message inserted: {message_id}")

    def query_all(self) -> List[Message]:
        """Return every stored message, ordered by id."""
        from demo.models import MessageRow

        with self._session("query of all messages") as db:
            rows = db.query(MessageRow).order_by(MessageRow.id.asc()).all()
            messages = [Message.model_validate(row) for row in rows]

        logger.info(f"Retrieved {len(messages)} messages")
        return messages

    def query_by_id(self, message_id: str) -> List[Message]:
        """
        Return the messages whose id equals message_id.

        At most one row can match; an empty list means no match.
        """
        from demo.models import MessageRow

        logger.info(f"Looking up message by ID: {message_id}")
        with self._session(f"lookup of message {message_id!r}") as db:
            rows = db.query(MessageRow).filter(MessageRow.id == message_id).all()
            messages = [Message.model_validate(row) for row in rows]

        logger.info(f"Message lookup result: {'found' if messages else 'not found'}")
        return messages
