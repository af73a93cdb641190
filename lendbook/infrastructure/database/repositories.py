"""Data access layer for the dataset document"""

from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from lendbook.infrastructure.database.models import DatasetDocumentRow


class DocumentRepository:
    """Repository for whole-document reads and replaces"""

    def __init__(self, db: Session, name: str = "default"):
        self.db = db
        self.name = name

    def get_document(self) -> Optional[DatasetDocumentRow]:
        """Fetch the stored document, if any"""
        return (
            self.db.query(DatasetDocumentRow)
            .filter(DatasetDocumentRow.name == self.name)
            .first()
        )

    def replace_document(self, payload: Dict[str, Any], last_updated: datetime) -> DatasetDocumentRow:
        """Overwrite the stored document; no partial updates"""
        row = self.get_document()
        if row is None:
            row = DatasetDocumentRow(name=self.name, revision=0)
            self.db.add(row)

        row.payload = payload
        row.last_updated = last_updated
        row.revision = (row.revision or 0) + 1
        self.db.flush()
        return row
