"""
Recipe Management Routes - Simplified Main Router
All handlers live in utils.recipe_handlers
"""
from fastapi import APIRouter, Depends, Request
from typing import List, Optional

from core.auth.dependencies import get_current_user, get_optional_user
from database.mongo import get_database
from models.recipe_model import LikeOut, MessageOut, RecipeOut, RecipeUpdateOut
from utils.cloudinary_helper import get_media_store
from utils.recipe_handlers import (
    create_recipe_handler,
    delete_recipe_handler,
    favorite_recipes_handler,
    get_recipe_handler,
    latest_recipes_handler,
    list_recipes_handler,
    my_recipes_handler,
    search_recipes_handler,
    toggle_like_handler,
    update_recipe_handler,
)

router = APIRouter()

# ============= GET ROUTES (SPECIFIC FIRST, DYNAMIC LAST) =============

@router.get("", response_model=List[RecipeOut])
async def get_all_recipes(category: Optional[str] = None, db=Depends(get_database), viewer=Depends(get_optional_user)):
    return await list_recipes_handler(db, viewer, category)

@router.get("/search/query", response_model=List[RecipeOut])
async def search_recipes(q: Optional[str] = None, db=Depends(get_database), viewer=Depends(get_optional_user)):
    return await search_recipes_handler(db, viewer, q)

@router.get("/latest", response_model=List[RecipeOut])
async def get_latest_recipes(db=Depends(get_database), viewer=Depends(get_optional_user)):
    return await latest_recipes_handler(db, viewer)

@router.get("/my", response_model=List[RecipeOut])
async def get_my_recipes(db=Depends(get_database), user=Depends(get_current_user)):
    return await my_recipes_handler(db, user)

@router.get("/favorites", response_model=List[RecipeOut])
async def get_favorite_recipes(q: Optional[str] = None, db=Depends(get_database), user=Depends(get_current_user)):
    return await favorite_recipes_handler(db, user, q)

@router.get("/{recipe_id}", response_model=RecipeOut)
async def get_recipe(recipe_id: str, db=Depends(get_database), viewer=Depends(get_optional_user)):
    return await get_recipe_handler(db, recipe_id, viewer)

# ============= MUTATIONS (multipart/form-data) =============

@router.post("/{recipe_id}/like", response_model=LikeOut)
async def toggle_like(recipe_id: str, db=Depends(get_database), user=Depends(get_current_user)):
    return await toggle_like_handler(db, recipe_id, user)

@router.post("", response_model=RecipeOut, status_code=201)
async def create_recipe(
    request: Request,
    db=Depends(get_database),
    user=Depends(get_current_user),
    media=Depends(get_media_store),
):
    form = await request.form()
    return await create_recipe_handler(db, form, user, media)

@router.put("/{recipe_id}", response_model=RecipeUpdateOut)
async def update_recipe(
    recipe_id: str,
    request: Request,
    db=Depends(get_database),
    user=Depends(get_current_user),
    media=Depends(get_media_store),
):
    form = await request.form()
    return await update_recipe_handler(db, recipe_id, form, user, media)

@router.delete("/{recipe_id}", response_model=MessageOut)
async def delete_recipe(
    recipe_id: str,
    db=Depends(get_database),
    user=Depends(get_current_user),
    media=Depends(get_media_store),
):
    return await delete_recipe_handler(db, recipe_id, user, media)
