"""
Account Route Handlers
Registration, login and profile lookups over the users collection
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List

import bcrypt
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from auth.jwt_handler import create_token
from core.auth.dependencies import ADMIN_ROLE
from database.mongo import USERS
from models.user_model import AuthResponse, LoginRequest, RegisterRequest, UserOut

logger = logging.getLogger(__name__)


# ==================== HELPER FUNCTIONS ====================

def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash"""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        return False


def admin_emails() -> List[str]:
    """Addresses from ADMIN_EMAILS that get the admin role when they register"""
    raw = os.getenv("ADMIN_EMAILS", "")
    return [e.strip().lower() for e in raw.split(",") if e.strip()]


def user_helper(user) -> UserOut:
    """
    Convert user document to UserOut, never exposing the password hash
    """
    return UserOut(
        id=str(user["_id"]),
        username=user.get("username", ""),
        email=user.get("email", ""),
        role=user.get("role", "user"),
        created_at=user.get("createdAt"),
    )


# ==================== ACCOUNT HANDLERS ====================

async def register_user_handler(payload: RegisterRequest, db) -> AuthResponse:
    email = payload.email.lower()
    users = db[USERS]

    if await users.find_one({"email": email}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="User already exists")

    user_doc: Dict[str, Any] = {
        "username": payload.username,
        "email": email,
        "password_hash": hash_password(payload.password),
        "role": ADMIN_ROLE if email in admin_emails() else "user",
        "createdAt": datetime.now(timezone.utc),
    }

    try:
        result = await users.insert_one(user_doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    except Exception as e:
        logger.error(f"Failed to create user {email}: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    user_doc["_id"] = result.inserted_id
    logger.info(f"✅ Registered user {email} with role {user_doc['role']}")
    return AuthResponse(token=create_token(str(result.inserted_id)), user=user_helper(user_doc))


async def login_user_handler(payload: LoginRequest, db) -> AuthResponse:
    email = payload.email.lower()
    try:
        user = await db[USERS].find_one({"email": email})
    except Exception as e:
        logger.error(f"Failed to load user {email}: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return AuthResponse(token=create_token(str(user["_id"])), user=user_helper(user))
