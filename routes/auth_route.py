"""
Authentication Routes
1. Register: username + email + password -> account + token
2. Login: email + password -> token
"""
from fastapi import APIRouter, Depends

from core.auth.dependencies import get_current_user
from database.mongo import get_database
from models.user_model import AuthResponse, LoginRequest, RegisterRequest, UserOut
from utils.user_handlers import login_user_handler, register_user_handler, user_helper

# Router cho Authentication
auth_router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@auth_router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, db=Depends(get_database)):
    return await register_user_handler(request, db)


@auth_router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db=Depends(get_database)):
    return await login_user_handler(request, db)


@auth_router.get("/me", response_model=UserOut)
async def me(user=Depends(get_current_user)):
    """Profile of the caller, resolved from the bearer token"""
    return user_helper(user)
