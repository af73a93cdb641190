"""Whole-document persistence store with change subscriptions and write retries"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lendbook.config import settings
from lendbook.domain.exceptions import PersistenceError
from lendbook.domain.models import Dataset
from lendbook.infrastructure.database.repositories import DocumentRepository
from lendbook.infrastructure.documents import decode_dataset, encode_dataset
from lendbook.infrastructure.observability.metrics import (
    persistence_failure_counter,
    persistence_latency_histogram,
)

logger = logging.getLogger(__name__)

DataCallback = Callable[[Dataset], None]
ErrorCallback = Callable[[Exception], None]


class DocumentStore:
    """
    Persistence collaborator: load, save and subscribe to one dataset document.

    Saves replace the whole document (last write wins). Every successful save
    notifies subscribers with the decoded document so listeners always hold
    exactly what was stored.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.max_retries = settings.persistence_max_retries if max_retries is None else max_retries
        self.backoff_base = settings.persistence_backoff_base if backoff_base is None else backoff_base
        self._sleep = sleep
        self._subscribers: List[Tuple[DataCallback, Optional[ErrorCallback]]] = []

    def load(self) -> Dataset:
        """
        Read the stored dataset; empty collections when nothing was saved yet.

        Raises:
            PersistenceError: On database errors
        """
        try:
            with self.session_factory() as db:
                row = DocumentRepository(db).get_document()
                payload = row.payload if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load dataset: {e}") from e

        try:
            return decode_dataset(payload)
        except SchemaError as e:
            raise PersistenceError(f"Stored dataset is corrupt: {e}") from e

    def save(self, dataset: Dataset) -> None:
        """
        Replace the stored document with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base ... between attempts
        - Retries on any SQLAlchemy error
        - Subscribers get on_data after success, on_error after the final failure

        Raises:
            PersistenceError: When every attempt failed
        """
        last_updated = datetime.now(timezone.utc)
        dataset.last_updated = last_updated
        payload = encode_dataset(dataset)

        attempt = 0
        with persistence_latency_histogram.time():
            while True:
                try:
                    self._write(payload, last_updated)
                    break  # Success

                except SQLAlchemyError as e:
                    attempt += 1
                    persistence_failure_counter.inc()
                    logger.warning(
                        f"Dataset save failed (attempt {attempt}/{self.max_retries}): {e}",
                        extra={"step": "persistence_save", "attempt": attempt},
                    )

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        error = PersistenceError(f"Could not save dataset after {attempt} attempts")
                        self._notify_error(error)
                        raise error from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    self._sleep(backoff)

        self._notify_data(decode_dataset(payload))

    def subscribe(self, on_data: DataCallback, on_error: Optional[ErrorCallback] = None) -> Callable[[], None]:
        """Register change listeners; returns a function that unsubscribes them"""
        entry = (on_data, on_error)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def _write(self, payload: dict, last_updated: datetime) -> None:
        with self.session_factory() as db:
            try:
                DocumentRepository(db).replace_document(payload, last_updated)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

    def _notify_data(self, dataset: Dataset) -> None:
        for on_data, _ in list(self._subscribers):
            on_data(dataset.copy())

    def _notify_error(self, error: Exception) -> None:
        for _, on_error in list(self._subscribers):
            if on_error is not None:
                on_error(error)
