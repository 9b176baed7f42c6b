"""Firestore access for analytics and progress data."""
import asyncio
import functools
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from prepflight.config import settings
from prepflight.errors import IndexNotReadyError
from prepflight.monitoring import firestore_errors, firestore_operations

logger = logging.getLogger(__name__)


def create_client(credentials_path: Optional[str] = None, project_id: Optional[str] = None):
    """Initialize the default Firebase app once and return an async Firestore client."""
    if not firebase_admin._apps:
        credentials_path = credentials_path or settings.firebase.credentials
        project_id = project_id or settings.firebase.project_id
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        options = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(cred, options)
        logger.info("Firebase initialized")
    return firestore_async.client()


def progress_doc_id(user_id: str, question_id: str) -> str:
    """Composite id of a user's progress document for one question."""
    return f"{user_id}_{question_id}"


def snapshot_to_dict(snapshot) -> Dict[str, Any]:
    """Flatten a document snapshot into its fields plus ``id``."""
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


def firestore_operation(context: str):
    """Log, count and re-raise failures of an adapter coroutine.

    Failures caused by a missing composite index surface as IndexNotReadyError.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            firestore_operations.labels(operation=func.__name__).inc()
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                firestore_errors.labels(operation=func.__name__).inc()
                logger.error(f"Error in {context}: {type(e).__name__}: {e}")
                if "index" in str(e).lower():
                    raise IndexNotReadyError() from e
                raise
        return wrapper
    return decorator


class FirestoreAdapter:
    """Read/write gateway to the ``questions`` and ``progress`` collections."""

    def __init__(self, client, questions_collection: Optional[str] = None, progress_collection: Optional[str] = None):
        self.db = client
        self.questions_collection = questions_collection or settings.firebase.questions_collection
        self.progress_collection = progress_collection or settings.firebase.progress_collection

    def _questions(self):
        return self.db.collection(self.questions_collection)

    def _progress(self):
        return self.db.collection(self.progress_collection)

    @firestore_operation("fetching questions")
    async def get_all_questions(self) -> List[Dict[str, Any]]:
        """Fetch the whole question corpus."""
        snapshots = await self._questions().get()
        return [snapshot_to_dict(snapshot) for snapshot in snapshots]

    @firestore_operation("fetching question")
    async def get_question(self, question_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one question, or None if it does not exist."""
        snapshot = await self._questions().document(question_id).get()
        return snapshot_to_dict(snapshot) if snapshot.exists else None

    @firestore_operation("fetching user progress")
    async def get_user_progress(self, user_id: str) -> List[Dict[str, Any]]:
        """Fetch every progress record of a user."""
        logger.debug(f"Fetching progress for user: {user_id}")
        query = self._progress().where(filter=FieldFilter("userId", "==", user_id))
        snapshots = await query.get()
        logger.debug(f"Progress documents found: {len(snapshots)}")
        return [snapshot_to_dict(snapshot) for snapshot in snapshots]

    @firestore_operation("fetching recent progress")
    async def get_recent_progress(self, user_id: str, start_date: datetime) -> List[Dict[str, Any]]:
        """Fetch a user's records attempted since ``start_date``, newest first."""
        query = (
            self._progress()
            .where(filter=FieldFilter("userId", "==", user_id))
            .where(filter=FieldFilter("lastAttempted", ">=", start_date))
            .order_by("lastAttempted", direction=firestore.Query.DESCENDING)
        )
        snapshots = await query.get()
        return [snapshot_to_dict(snapshot) for snapshot in snapshots]

    @firestore_operation("fetching progress record")
    async def get_progress_record(self, user_id: str, question_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one progress record, or None if the question was never attempted."""
        snapshot = await self._progress().document(progress_doc_id(user_id, question_id)).get()
        return snapshot_to_dict(snapshot) if snapshot.exists else None

    @firestore_operation("updating progress")
    async def set_progress_record(self, user_id: str, question_id: str, data: Dict[str, Any]) -> None:
        """Replace a progress record."""
        await self._progress().document(progress_doc_id(user_id, question_id)).set(data)

    @firestore_operation("updating study time")
    async def batch_update_study_time(self, user_id: str, updates: List[Dict[str, Any]]) -> None:
        """Set ``answerTime`` on several progress documents in one atomic batch."""
        if not updates:
            return
        batch = self.db.batch()
        progress_ref = self._progress()
        for update in updates:
            batch.update(progress_ref.document(update["id"]), {"answerTime": update["answerTime"]})
        await batch.commit()
        logger.info(f"Updated study time on {len(updates)} progress documents for user {user_id}")

    @firestore_operation("resetting progress")
    async def delete_user_progress(self, user_id: str, batch_size: Optional[int] = None) -> int:
        """Delete every progress record of a user; returns how many were deleted.

        Each chunk commits atomically, chunks are committed concurrently.
        """
        batch_size = batch_size or settings.analytics.delete_batch_size
        query = self._progress().where(filter=FieldFilter("userId", "==", user_id))
        snapshots = await query.get()

        commits = []
        for start in range(0, len(snapshots), batch_size):
            batch = self.db.batch()
            for snapshot in snapshots[start:start + batch_size]:
                batch.delete(snapshot.reference)
            commits.append(batch.commit())

        await asyncio.gather(*commits)
        logger.info(f"Deleted {len(snapshots)} progress documents for user {user_id} in {len(commits)} batches")
        return len(snapshots)
