# chatconnect/models/document.py
"""
Database model backing the document store.
Every document (room, profile, message, ...) is one row keyed by its full
slash-separated path; the parent collection path is stored separately so a
collection can be listed with a single indexed filter.
"""
from tortoise import fields, models

class Document(models.Model):
    """
    Document row.

    - path: full document path, e.g. "artifacts/chatconnect-app/rooms/X7K2QT"
    - collection: parent collection path, e.g. "artifacts/chatconnect-app/rooms"
    - doc_id: last path segment
    - data: the document fields (JSON)
    - revision: opaque token replaced on every write; transactions compare it at commit
    """
    path = fields.CharField(pk=True, max_length=512)
    collection = fields.CharField(max_length=512, index=True)
    doc_id = fields.CharField(max_length=128)
    data = fields.JSONField(default=dict)
    revision = fields.CharField(max_length=32)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "documents"
