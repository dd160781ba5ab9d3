# chatconnect/models/__init__.py
"""
Database models module initialization.

Models exported:
- User: login account (credentials only)
- Document: one row per document-store document
"""
from .user import User
from .document import Document
