# chatconnect/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT token creation/validation.
"""
import os
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from dotenv import load_dotenv
from pathlib import Path

# Load environment variables from project root
ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

# Password hashing context (Argon2 only)
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# JWT configuration
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")  # Secret key for JWT signing (use strong secret in production)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))  # Token expiration time in minutes
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str, username: str) -> str:
    """
    Create a JWT access token for user authentication.

    The username travels in the token so WebSocket handlers can label the
    user without a database lookup.

    Token payload includes:
        - sub: Subject (user ID)
        - username: Display name
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "username": username,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
