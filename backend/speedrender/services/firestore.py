"""Firestore helper service for the projects collection."""
from __future__ import annotations

from typing import Any, Dict, Optional
from google.cloud import firestore

from ..models import ProjectRecord


class FirestoreService:
    """Thin wrapper around Firestore client for project records."""

    def __init__(
        self,
        collection: str = "projects",
        project: Optional[str] = None,
        database: Optional[str] = None,
        client: Optional[firestore.Client] = None,
    ) -> None:
        if client is not None:
            self.client = client
        elif database:
            # Use explicit database if provided in env, else default
            self.client = firestore.Client(project=project or None, database=database)
        else:
            self.client = firestore.Client()
        self._projects = self.client.collection(collection)

    def upsert(self, record: ProjectRecord) -> None:
        """Replace the project document (last write wins, no merge)."""
        doc: Dict[str, Any] = {**record.to_document(), "updatedAt": firestore.SERVER_TIMESTAMP}
        self._projects.document(record.id).set(doc)

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        doc = self._projects.document(project_id).get()
        return doc.to_dict() if doc.exists else None
