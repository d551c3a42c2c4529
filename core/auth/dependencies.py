"""
JWT Authentication Dependencies
Centralized auth logic for all routes
"""
import logging
from fastapi import Depends, HTTPException, Request
from typing import Any, Dict, Optional
from bson import ObjectId

from auth.jwt_handler import decode_token
from database.mongo import get_database, USERS

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    return token


async def get_current_user(request: Request, db=Depends(get_database)) -> Dict[str, Any]:
    """
    Verify the bearer token and return the user document it belongs to.
    Raises 401 when the token is missing, invalid, expired or points at a deleted user.
    """
    token = _extract_bearer_token(request)

    user_id = decode_token(token)
    if not user_id or not ObjectId.is_valid(user_id):
        logger.info("❌ Token verification failed")
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    try:
        user = await db[USERS].find_one({"_id": ObjectId(user_id)}, {"password_hash": 0})
    except Exception as e:
        logger.error(f"Failed to load user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    if not user:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")
    return user


async def get_optional_user(request: Request, db=Depends(get_database)) -> Optional[Dict[str, Any]]:
    """
    Same as get_current_user, but anonymous or invalid credentials resolve to None
    """
    if not request.headers.get("Authorization"):
        return None
    try:
        return await get_current_user(request, db)
    except HTTPException as e:
        if e.status_code >= 500:
            raise
        return None


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("role") == ADMIN_ROLE


def can_modify_recipe(user: Dict[str, Any], recipe: Dict[str, Any]) -> bool:
    """Owner-or-admin rule shared by update and delete"""
    if is_admin(user):
        return True
    return str(recipe.get("createdBy")) == str(user["_id"])


def require_recipe_owner(user: Dict[str, Any], recipe: Dict[str, Any]) -> None:
    if not can_modify_recipe(user, recipe):
        logger.warning(f"Unauthorized change attempt: user {user['_id']} on recipe {recipe['_id']}")
        raise HTTPException(status_code=401, detail="Not authorized")
