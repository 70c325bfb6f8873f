"""Data access layer for application documents"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tuition_gateway.domain.exceptions import ConcurrentUpdateError, DocumentStoreError
from tuition_gateway.infrastructure.database.models import ApplicationDocument

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]


def deep_merge(base: Dict[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
    """Merge partial into a copy of base; nested dicts merge, everything else overwrites"""
    merged = copy.deepcopy(base)
    for key, value in partial.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ChangeFeed:
    """In-process push notifications for document writes"""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[ChangeCallback]] = {}

    def subscribe(self, document_id: str, callback: ChangeCallback) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(document_id, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._listeners.get(document_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._listeners.pop(document_id, None)

        return unsubscribe

    def publish(self, document_id: str, document: Dict[str, Any]) -> None:
        with self._lock:
            callbacks = list(self._listeners.get(document_id, []))
        for callback in callbacks:
            try:
                callback(copy.deepcopy(document))
            except Exception as e:
                logger.error(
                    f"Change listener failed: {e}",
                    extra={"application_id": document_id},
                )


change_feed = ChangeFeed()


class ApplicationRepository:
    """
    Repository for application documents.

    Behaves like a remote document store: get by id, merge-write, and
    per-document change subscriptions. Every set() is its own commit.
    """

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.feed = feed or change_feed

    def _load(self, document_id: str) -> Optional[ApplicationDocument]:
        return self.db.get(ApplicationDocument, document_id, populate_existing=True)

    def get(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Fetch document data (with its id) or None"""
        try:
            row = self._load(document_id)
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to read application {document_id}: {e}") from e
        if row is None:
            return None
        document = copy.deepcopy(row.data or {})
        document["id"] = row.id
        return document

    def version(self, document_id: str) -> Optional[int]:
        row = self._load(document_id)
        return row.version if row is not None else None

    def set(
        self,
        document_id: str,
        partial: Dict[str, Any],
        merge: bool = True,
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Write a document, merging into the existing one by default.

        With expected_version the write only applies if the stored version
        still matches (compare-and-swap); without it the merge is
        unconditional.

        Returns:
            The new document version

        Raises:
            ConcurrentUpdateError: expected_version no longer matches
            DocumentStoreError: the write failed
        """
        partial = {k: v for k, v in partial.items() if k != "id"}
        try:
            row = self._load(document_id)
            if row is None:
                if expected_version not in (None, 0):
                    raise ConcurrentUpdateError(f"Application {document_id} no longer exists")
                row = ApplicationDocument(id=document_id, data=copy.deepcopy(partial), version=1)
                self.db.add(row)
                self.db.commit()
                new_version, data = 1, row.data
            else:
                data = deep_merge(row.data or {}, partial) if merge else copy.deepcopy(partial)
                if expected_version is None:
                    row.data = data
                    row.version = row.version + 1
                    self.db.commit()
                    new_version = row.version
                else:
                    result = self.db.execute(
                        update(ApplicationDocument)
                        .where(ApplicationDocument.id == document_id)
                        .where(ApplicationDocument.version == expected_version)
                        .values(data=data, version=expected_version + 1)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        self.db.rollback()
                        raise ConcurrentUpdateError(
                            f"Application {document_id} changed since version {expected_version}"
                        )
                    self.db.commit()
                    new_version = expected_version + 1
        except DocumentStoreError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DocumentStoreError(f"Failed to write application {document_id}: {e}") from e

        document = copy.deepcopy(data)
        document["id"] = document_id
        self.feed.publish(document_id, document)
        return new_version

    def on_change(self, document_id: str, callback: ChangeCallback) -> Callable[[], None]:
        """Subscribe to writes of one document; returns the unsubscribe function"""
        return self.feed.subscribe(document_id, callback)

    def list_all(self, limit: int = 500) -> List[Dict[str, Any]]:
        """All application documents, most recently updated first"""
        try:
            rows = (
                self.db.query(ApplicationDocument)
                .order_by(ApplicationDocument.updated_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Failed to list applications: {e}") from e
        return [dict(copy.deepcopy(row.data or {}), id=row.id) for row in rows]
