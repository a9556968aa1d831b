from contextlib import contextmanager
from typing import Iterator
import logging
from sqlmodel import Session

from ....application.ports.transaction import TransactionManager

logger = logging.getLogger(__name__)


class SqlTransactionManager(TransactionManager):
    """Commits the shared session when the block exits cleanly, rolls back otherwise."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            self.session.rollback()
            raise
