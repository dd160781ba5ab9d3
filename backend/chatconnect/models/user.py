# chatconnect/models/user.py
"""
Database model for login accounts.
Holds the credentials used by /auth; the user's profile data lives in the
document store (users/{id}/profile/userProfile and the public profile copy).
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    Login account model.

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username must be unique across all users
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key, also the userId used in documents
    username = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # Login / display name (must be unique, indexed for fast lookups)
    email = fields.CharField(max_length=256, null=True)  # Email address (optional)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash
    created_at = fields.DatetimeField(auto_now_add=True)  # Timestamp when account was created

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
