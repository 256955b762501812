from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .exceptions import ConcurrentModificationError, handle_database_error
from .logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """
    One transaction per ``begin()`` block: commit on success, rollback on any error.

    Example:
        >>> uow = UnitOfWork(SessionLocal)
        >>> with uow.begin() as s:
        ...     transition_survey(s, survey_id=3, to_status=SurveyStatus.ACTIVE)
    """

    def __init__(self, SessionLocal: sessionmaker):
        self.SessionLocal = SessionLocal

    @contextmanager
    def begin(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except StaleDataError as e:
            s.rollback()
            raise ConcurrentModificationError("row", None) from e
        except SQLAlchemyError as e:
            s.rollback()
            logger.error("Transaction rolled back: %s", e)
            raise handle_database_error(e, "commit transaction") from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()
