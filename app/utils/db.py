from contextlib import contextmanager
import logging
from sqlalchemy.exc import SQLAlchemyError
from models import db
from app.services.exceptions import PersistenceError, ServiceError

logger = logging.getLogger(__name__)


@contextmanager
def transactional(message="DB transaction failed"):
    """Context manager to wrap a database transaction.

    Commits when the block exits cleanly and rolls back on any exception.
    Storage failures are re-raised as ``PersistenceError``; service errors
    propagate unchanged after the rollback.
    """
    try:
        yield db.session
        db.session.commit()
    except ServiceError as e:
        db.session.rollback()
        logger.info(f"{message}: %s", e)
        raise
    except SQLAlchemyError as e:
        logger.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise PersistenceError(message) from e
    except Exception as e:
        logger.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise
