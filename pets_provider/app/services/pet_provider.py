"""
Public entry point of the pets provider.

``PetProvider`` receives CRUD requests addressed by a locator, routes
them, validates payloads, delegates to the store engine and notifies
observers about successful writes.  Apart from the lazily opened store
engine it keeps no state between calls.

Item locators always win over a caller-supplied selection: a query,
update or delete on ``.../pets/7`` acts on pet 7 and nothing else.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..core.config import Settings, settings as default_settings
from ..core.contract import COLUMN_ID, PetContract
from ..core.db import RowSequence, StoreEngine
from ..core.exceptions import UnsupportedOperationError
from ..schemas.pet import PetRead
from .notification_service import ChangeNotifier, Observer, ObserverHandle
from .uri_router import Collection, Item, Target, UriRouter
from .validation_service import ValidationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryResult:
    """Rows of a query plus the locator they were produced for.

    ``notification_uri`` lets a caller register an observer for the
    exact locator it queried and re-run the query when it changes.
    """

    rows: RowSequence
    notification_uri: str

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def all(self) -> List[Dict[str, Any]]:
        return self.rows.all()

    def as_pets(self) -> List[PetRead]:
        """Rows as ``PetRead`` models; the query must project every column."""
        return [PetRead.model_validate(row) for row in self.rows]


class PetProvider:
    """CRUD over the pets table addressed by content locators."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[StoreEngine] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.settings = settings or default_settings
        self.contract = PetContract.from_settings(self.settings)
        self.router = UriRouter(self.contract)
        self.notifier = notifier or ChangeNotifier(max_workers=self.settings.notifier_workers)
        self._store = store
        self._store_lock = threading.Lock()

    # lifecycle ---------------------------------------------------------

    @property
    def store(self) -> StoreEngine:
        """The store engine, created and initialised on first access."""
        with self._store_lock:
            if self._store is None:
                self._store = StoreEngine(self.settings.database_url, timeout=self.settings.db_timeout)
            store = self._store
        store.ensure_schema()
        return store

    def close(self) -> None:
        """Deliver pending notifications and release the database."""
        self.notifier.shutdown(wait_for_pending=True)
        with self._store_lock:
            if self._store is not None:
                self._store.close()

    def __enter__(self) -> "PetProvider":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # observers ---------------------------------------------------------

    def register_observer(self, locator: str, callback: Observer, notify_for_descendants: bool = True) -> ObserverHandle:
        target = self.router.route(locator)
        return self.notifier.register(self._canonical(target), callback, notify_for_descendants)

    def unregister_observer(self, handle: ObserverHandle) -> bool:
        return self.notifier.unregister(handle)

    # helpers -----------------------------------------------------------

    def _canonical(self, target: Target) -> str:
        """Locator of ``target`` as the contract spells it (no leading zeros)."""
        if isinstance(target, Item):
            return self.contract.item_uri(target.item_id)
        return self.contract.content_uri

    @staticmethod
    def _scoped(
        target: Target, selection: Optional[str], selection_args: Optional[Sequence[Any]]
    ) -> Tuple[Optional[str], Optional[Sequence[Any]]]:
        if isinstance(target, Item):
            return f"{COLUMN_ID} = ?", (target.item_id,)
        return selection, selection_args

    # operations --------------------------------------------------------

    def query(
        self,
        locator: str,
        columns: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        order_by: Optional[str] = None,
    ) -> QueryResult:
        target = self.router.route(locator)
        selection, selection_args = self._scoped(target, selection, selection_args)
        rows = self.store.query_all(columns, selection, selection_args, order_by)
        return QueryResult(rows=rows, notification_uri=self._canonical(target))

    def get_type(self, locator: str) -> str:
        """MIME type of the data behind ``locator``."""
        target = self.router.route(locator)
        if isinstance(target, Item):
            return self.contract.content_item_type
        return self.contract.content_list_type

    def insert(self, locator: str, fields: Mapping[str, Any]) -> Optional[str]:
        """Insert a pet; returns its item locator, or ``None`` if the store failed."""
        target = self.router.route(locator)
        if not isinstance(target, Collection):
            raise UnsupportedOperationError("insertion", locator)

        values = ValidationService.validate_for_insert(fields)
        result = self.store.insert(values)
        if not result.ok:
            logger.error("Failed to insert row for %s: %s", locator, result.error.message)
            return None

        logger.info("Inserted pet %d (%s)", result.row_id, values.get("name"))
        self.notifier.notify_change(self._canonical(target))
        return self.contract.item_uri(result.row_id)

    def update(
        self,
        locator: str,
        fields: Mapping[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        """Update the pets behind ``locator``; returns the number of rows updated."""
        target = self.router.route(locator)
        selection, selection_args = self._scoped(target, selection, selection_args)

        values = ValidationService.validate_for_update(fields)
        # Nothing to write: don't touch the database.
        if not values:
            return 0

        rows_updated = self.store.update(values, selection, selection_args)
        if rows_updated != 0:
            logger.info("Updated %d pet(s) at %s", rows_updated, locator)
            self.notifier.notify_change(self._canonical(target))
        return rows_updated

    def delete(
        self,
        locator: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        """Delete the pets behind ``locator``; returns the number of rows deleted."""
        target = self.router.route(locator)
        selection, selection_args = self._scoped(target, selection, selection_args)

        rows_deleted = self.store.delete(selection, selection_args)
        if rows_deleted != 0:
            logger.info("Deleted %d pet(s) at %s", rows_deleted, locator)
            self.notifier.notify_change(self._canonical(target))
        return rows_deleted
