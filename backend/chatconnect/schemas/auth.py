# chatconnect/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
"""
from pydantic import BaseModel

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    """
    username: str  # User login name
    password: str  # User password (plain text, hashed server-side)

class RegisterIn(BaseModel):
    """
    Request model for account registration.
    """
    username: str  # Must be unique
    email: str | None = None  # Optional, must be unique if provided
    password: str
