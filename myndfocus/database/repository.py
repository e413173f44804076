"""Document store backed by SQLAlchemy.

Implements the ``DocumentStore`` contract on a single ``documents`` table.
Database work runs in a worker thread so callers on the event loop are not
blocked; every failure surfaces as a ``StoreError``.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from myndfocus.database.database import SessionLocal
from myndfocus.database.models import DocumentDB
from myndfocus.lifecycle.errors import StoreError

logger = logging.getLogger(__name__)


def _classify(error: SQLAlchemyError) -> str:
    """Map a database error onto a StoreError kind."""
    text = str(error).lower()
    if "permission denied" in text or "readonly" in text or "read-only" in text:
        return StoreError.PERMISSION
    return StoreError.CONNECTIVITY


def _sort_key(value: Any):
    """Order mixed JSON values: numbers, then strings, then anything else."""
    if isinstance(value, bool):
        return (2, str(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, str(value))


class SqlDocumentStore:
    """DocumentStore implementation over a SQLAlchemy session factory."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def create_or_replace(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._create_or_replace, collection_path, doc_id, fields)

    async def patch(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._patch, collection_path, doc_id, fields)

    async def remove(self, collection_path: str, doc_id: str) -> None:
        await asyncio.to_thread(self._remove, collection_path, doc_id)

    async def get(self, collection_path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._get, collection_path, doc_id)

    async def query_ordered(
        self,
        collection_path: str,
        sort_field: str,
        direction: str = "asc",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._query_ordered, collection_path, sort_field, direction, limit)

    def _commit(self, db: Session, action: str, collection_path: str, doc_id: str) -> None:
        try:
            db.commit()
            logger.debug(f"{action} {collection_path}/{doc_id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action.lower()} {collection_path}/{doc_id}: {type(e).__name__}: {str(e)}")
            raise StoreError(_classify(e), str(e)) from e

    def _create_or_replace(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        body = to_jsonable_python(fields)
        body.pop("id", None)
        try:
            with self._session_factory() as db:
                document = db.get(DocumentDB, (collection_path, doc_id))
                if document is None:
                    db.add(DocumentDB(collection=collection_path, id=doc_id, fields=body))
                else:
                    document.fields = body
                self._commit(db, "Wrote", collection_path, doc_id)
        except SQLAlchemyError as e:
            raise StoreError(_classify(e), str(e)) from e

    def _patch(self, collection_path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        body = to_jsonable_python(fields)
        body.pop("id", None)
        try:
            with self._session_factory() as db:
                document = db.get(DocumentDB, (collection_path, doc_id))
                if document is None:
                    raise StoreError(StoreError.NOT_FOUND, f"{collection_path}/{doc_id} not found")
                merged = dict(document.fields or {})
                merged.update(body)
                document.fields = merged
                self._commit(db, "Patched", collection_path, doc_id)
        except SQLAlchemyError as e:
            raise StoreError(_classify(e), str(e)) from e

    def _remove(self, collection_path: str, doc_id: str) -> None:
        try:
            with self._session_factory() as db:
                document = db.get(DocumentDB, (collection_path, doc_id))
                if document is None:
                    raise StoreError(StoreError.NOT_FOUND, f"{collection_path}/{doc_id} not found")
                db.delete(document)
                self._commit(db, "Removed", collection_path, doc_id)
        except SQLAlchemyError as e:
            raise StoreError(_classify(e), str(e)) from e

    def _get(self, collection_path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            with self._session_factory() as db:
                document = db.get(DocumentDB, (collection_path, doc_id))
                return document.to_document() if document else None
        except SQLAlchemyError as e:
            raise StoreError(_classify(e), str(e)) from e

    def _query_ordered(
        self,
        collection_path: str,
        sort_field: str,
        direction: str,
        limit: Optional[int],
    ) -> List[Dict[str, Any]]:
        if direction not in ("asc", "desc"):
            raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")
        try:
            with self._session_factory() as db:
                rows = db.query(DocumentDB).filter(DocumentDB.collection == collection_path).all()
                documents = [row.to_document() for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(_classify(e), str(e)) from e

        # Sorted by id first so equal sort values keep a stable order
        documents.sort(key=lambda d: d["id"])
        present = [d for d in documents if d.get(sort_field) is not None]
        missing = [d for d in documents if d.get(sort_field) is None]
        present.sort(key=lambda d: _sort_key(d[sort_field]), reverse=(direction == "desc"))

        ordered = present + missing
        return ordered[:limit] if limit is not None else ordered
