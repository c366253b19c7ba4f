"""Nested transaction bookkeeping over one real transaction."""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from db_access.adapters.base import BaseDriver
from db_access.errors import driver_error_message

logger = logging.getLogger(__name__)

# (statement, result, error message) -> None
TransactionLogger = Callable[[str, str, Optional[str]], None]


class TransactionLedger:
    """Counts nested begin() calls against a single driver transaction.

    Only the outermost begin() starts the real transaction, and only a
    commit() or rollback() that brings the depth from 1 to 0 ends it. Inner
    calls are bookkeeping only.
    """

    def __init__(self, driver: BaseDriver, log: Optional[TransactionLogger] = None):
        self.driver = driver
        self.depth = 0
        self._log = log

    @property
    def active(self) -> bool:
        return self.driver.in_transaction()

    def begin(self) -> int:
        """
        Enter a (possibly nested) transaction.

        Returns:
            New nesting depth
        """
        if not self.driver.in_transaction():
            self._run("START TRANSACTION", self.driver.begin)
        self.depth += 1
        return self.depth

    def commit(self) -> int:
        """
        Leave a transaction level, committing if it is the outermost one.

        Returns:
            New nesting depth
        """
        if self.driver.in_transaction() and self.depth == 1:
            self._run("COMMIT", self.driver.commit)
        return self._decrement("commit")

    def rollback(self) -> int:
        """
        Leave a transaction level, rolling back if it is the outermost one.

        Returns:
            New nesting depth
        """
        if self.driver.in_transaction() and self.depth == 1:
            self._run("ROLLBACK", self.driver.rollback)
        return self._decrement("rollback")

    def _decrement(self, action: str) -> int:
        if self.depth == 0:
            logger.warning(f"{action}() called without a matching begin(); depth stays 0")
            return self.depth
        self.depth -= 1
        return self.depth

    def _run(self, statement: str, operation: Callable[[], None]) -> None:
        """Run a driver transaction call; failures are logged, never raised."""
        try:
            operation()
            result, message = "success", None
        except SQLAlchemyError as e:
            result, message = "error", driver_error_message(e)
            logger.warning(f"{statement} failed: {message}")
        if self._log is not None:
            self._log(statement, result, message)
