"""
Recipe Route Handlers
All recipe-related route handlers consolidated here
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ReturnDocument
from starlette.datastructures import UploadFile

from core.auth.dependencies import require_recipe_owner
from database.mongo import RECIPES, USERS
from models.recipe_model import CATEGORIES, LikeOut, MessageOut, RecipeOut, RecipeUpdateOut
from utils.cloudinary_helper import MediaStore, delete_image_quietly, upload_image
from utils.ingredients import normalize_ingredients, read_ingredients

logger = logging.getLogger(__name__)

LATEST_LIMIT = 3
NEWEST_FIRST = [("createdAt", -1), ("_id", -1)]
SCALAR_FIELDS = ("title", "description", "instructions", "category")
REQUIRED_FIELDS_MESSAGE = "Missing required fields: title, ingredients, instructions, category"
COOKING_TIME_ERROR = "cookingTime must be a whole, non-negative number of minutes"
MAX_INT64 = 2 ** 63 - 1


# ==================== HELPER FUNCTIONS ====================

def _validate_object_id(object_id: str, detail: str = "Invalid ID") -> ObjectId:
    """
    Validate and convert string to ObjectId
    """
    if not object_id or not isinstance(object_id, str) or not ObjectId.is_valid(object_id):
        raise HTTPException(status_code=400, detail=detail)
    return ObjectId(object_id)


def _title_filter(q: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive literal substring match on title"""
    if not q:
        return {}
    return {"title": {"$regex": re.escape(q), "$options": "i"}}


def _liked_by(recipe: dict, user_id: Optional[ObjectId]) -> bool:
    if user_id is None:
        return False
    return any(str(liker) == str(user_id) for liker in recipe.get("likedBy") or [])


async def _load_creators(db, recipes: Iterable[dict], with_email: bool = False) -> Dict[str, dict]:
    """Batched lookup of the users referenced by `createdBy`"""
    creator_ids = {r["createdBy"] for r in recipes if isinstance(r.get("createdBy"), ObjectId)}
    if not creator_ids:
        return {}

    projection = {"username": 1, "email": 1} if with_email else {"username": 1}
    users = await db[USERS].find({"_id": {"$in": list(creator_ids)}}, projection).to_list(length=None)
    return {str(u["_id"]): u for u in users}


def _to_recipe_out(recipe: dict, viewer: Optional[dict], creators: Optional[Dict[str, dict]] = None) -> RecipeOut:
    """
    Convert a recipe document into its API shape, annotating likes for the viewer
    and expanding the creator when it was loaded
    """
    liked_by = recipe.get("likedBy") or []
    created_by = recipe.get("createdBy")
    if creators is not None:
        created_by = creators.get(str(created_by))

    return RecipeOut(
        _id=recipe["_id"],
        title=recipe.get("title", ""),
        description=recipe.get("description") or "",
        ingredients=recipe.get("ingredients") or [],
        instructions=recipe.get("instructions", ""),
        category=recipe.get("category", ""),
        cookingTime=recipe.get("cookingTime"),
        image=recipe.get("image") or None,
        createdBy=created_by,
        likedBy=liked_by,
        likedByUser=_liked_by(recipe, viewer["_id"] if viewer else None),
        likes=len(liked_by),
        createdAt=recipe.get("createdAt"),
        updatedAt=recipe.get("updatedAt"),
    )


async def _find_annotated(db, query: dict, viewer: Optional[dict], limit: int = 0) -> List[RecipeOut]:
    cursor = db[RECIPES].find(query).sort(NEWEST_FIRST)
    if limit:
        cursor = cursor.limit(limit)
    recipes = await cursor.to_list(length=None)
    creators = await _load_creators(db, recipes)
    return [_to_recipe_out(r, viewer, creators) for r in recipes]


async def _get_recipe_or_404(db, recipe_oid: ObjectId) -> dict:
    recipe = await db[RECIPES].find_one({"_id": recipe_oid})
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


# ==================== FORM PARSING ====================

@dataclass
class RecipeForm:
    """Multipart recipe submission, with only the fields the client actually sent"""
    fields: Dict[str, Any] = field(default_factory=dict)
    ingredients: Optional[List[str]] = None
    image: Optional[UploadFile] = None
    clear_image: bool = False


def _parse_cooking_time(value) -> Optional[int]:
    """Whole, non-negative minutes that fit a bson int64; anything else is a 400"""
    if value is None or str(value).strip() == "":
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=COOKING_TIME_ERROR)
    if not math.isfinite(number) or not number.is_integer():
        raise HTTPException(status_code=400, detail=COOKING_TIME_ERROR)

    cooking_time = int(number)
    if not 0 <= cooking_time <= MAX_INT64:
        raise HTTPException(status_code=400, detail=COOKING_TIME_ERROR)
    return cooking_time


def parse_recipe_form(form) -> RecipeForm:
    """
    Pull recipe fields out of a multipart form. Blank scalar fields count as absent.
    """
    parsed = RecipeForm()

    for name in SCALAR_FIELDS:
        value = form.get(name)
        if isinstance(value, str) and value.strip():
            parsed.fields[name] = value.strip()

    cooking_time = _parse_cooking_time(form.get("cookingTime"))
    if cooking_time is not None:
        parsed.fields["cookingTime"] = cooking_time

    category = parsed.fields.get("category")
    if category is not None and category not in CATEGORIES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category. Expected one of: {', '.join(CATEGORIES)}"
        )

    payload = read_ingredients(form)
    if payload is not None:
        parsed.ingredients = normalize_ingredients(payload)

    image = form.get("image")
    # browsers send an empty file part when no file was picked
    if isinstance(image, UploadFile) and image.filename:
        parsed.image = image

    parsed.clear_image = form.get("clearImage") == "true"
    return parsed


# ==================== QUERY HANDLERS ====================

async def list_recipes_handler(db, viewer: Optional[dict], category: Optional[str] = None) -> List[RecipeOut]:
    """
    All recipes, newest first, optionally filtered by exact category
    """
    query = {"category": category} if category else {}
    try:
        return await _find_annotated(db, query, viewer)
    except Exception as e:
        logger.error(f"❌ Error fetching all recipes: {e}")
        raise HTTPException(status_code=500, detail="Server error")


async def search_recipes_handler(db, viewer: Optional[dict], q: Optional[str]) -> List[RecipeOut]:
    try:
        return await _find_annotated(db, _title_filter(q), viewer)
    except Exception as e:
        logger.error(f"❌ Error searching recipes: {e}")
        raise HTTPException(status_code=500, detail="Server error")


async def latest_recipes_handler(db, viewer: Optional[dict]) -> List[RecipeOut]:
    try:
        return await _find_annotated(db, {}, viewer, limit=LATEST_LIMIT)
    except Exception as e:
        logger.error(f"❌ Latest recipes fetch failed: {e}")
        raise HTTPException(status_code=500, detail="Server error")


async def my_recipes_handler(db, user: dict) -> List[RecipeOut]:
    try:
        return await _find_annotated(db, {"createdBy": user["_id"]}, user)
    except Exception as e:
        logger.error(f"❌ User recipes fetch failed: {e}")
        raise HTTPException(status_code=500, detail="Server error")


async def favorite_recipes_handler(db, user: dict, q: Optional[str] = None) -> List[RecipeOut]:
    """
    Recipes the caller has liked, optionally narrowed by title
    """
    query = {"likedBy": user["_id"], **_title_filter(q)}
    try:
        return await _find_annotated(db, query, user)
    except Exception as e:
        logger.error(f"❌ Failed to fetch liked recipes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch liked recipes")


async def get_recipe_handler(db, recipe_id: str, viewer: Optional[dict]) -> RecipeOut:
    recipe_oid = _validate_object_id(recipe_id)
    try:
        recipe = await _get_recipe_or_404(db, recipe_oid)
        creators = await _load_creators(db, [recipe], with_email=True)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error fetching recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error")
    return _to_recipe_out(recipe, viewer, creators)


# ==================== MUTATION HANDLERS ====================

async def toggle_like_handler(db, recipe_id: str, user: dict) -> LikeOut:
    """
    Like when the caller is not in likedBy, unlike otherwise.
    $addToSet keeps likedBy free of duplicates even on repeated clicks.
    """
    recipe_oid = _validate_object_id(recipe_id)
    user_id = user["_id"]

    try:
        recipe = await _get_recipe_or_404(db, recipe_oid)
        if _liked_by(recipe, user_id):
            update = {"$pull": {"likedBy": user_id}}
        else:
            update = {"$addToSet": {"likedBy": user_id}}

        updated = await db[RECIPES].find_one_and_update(
            {"_id": recipe_oid},
            update,
            return_document=ReturnDocument.AFTER
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Like/Unlike failed: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    if not updated:
        raise HTTPException(status_code=404, detail="Recipe not found")

    liked_by = updated.get("likedBy") or []
    return LikeOut(likedByUser=_liked_by(updated, user_id), likes=len(liked_by))


async def create_recipe_handler(db, form, user: dict, media: MediaStore) -> RecipeOut:
    """
    Validate the submission, stage the image upload, then persist the recipe.
    A failed insert discards the staged upload.
    """
    parsed = parse_recipe_form(form)
    ingredients = parsed.ingredients or []

    if not all(parsed.fields.get(name) for name in ("title", "instructions", "category")) or not ingredients:
        raise HTTPException(status_code=400, detail=REQUIRED_FIELDS_MESSAGE)

    image_url = await upload_image(media, parsed.image) if parsed.image else None

    now = datetime.now(timezone.utc)
    recipe_doc = {
        "title": parsed.fields["title"],
        "description": parsed.fields.get("description", ""),
        "instructions": parsed.fields["instructions"],
        "category": parsed.fields["category"],
        "cookingTime": parsed.fields.get("cookingTime"),
        "ingredients": ingredients,
        "image": image_url,
        "createdBy": user["_id"],
        "likedBy": [],
        "createdAt": now,
        "updatedAt": now,
    }

    try:
        result = await db[RECIPES].insert_one(recipe_doc)
    except Exception as e:
        logger.error(f"❌ Recipe creation failed: {e}")
        await delete_image_quietly(media, image_url)
        raise HTTPException(status_code=500, detail="Server error")

    recipe_doc["_id"] = result.inserted_id
    logger.info(f"Recipe created by {user['_id']}: {result.inserted_id}")
    return _to_recipe_out(recipe_doc, user)


async def update_recipe_handler(db, recipe_id: str, form, user: dict, media: MediaStore) -> RecipeUpdateOut:
    """
    Partial update: only fields present in the form are applied.

    Image handling:
      - new file: upload, store the new URL, then drop the previous image
      - clearImage == "true" without a file: store "" and drop the previous image
      - neither: image untouched
    """
    recipe_oid = _validate_object_id(recipe_id)
    try:
        recipe = await _get_recipe_or_404(db, recipe_oid)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Update failed loading recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    require_recipe_owner(user, recipe)
    parsed = parse_recipe_form(form)

    changes: Dict[str, Any] = dict(parsed.fields)
    if parsed.ingredients is not None:
        changes["ingredients"] = parsed.ingredients

    old_image = recipe.get("image")
    new_image = None
    if parsed.image:
        new_image = await upload_image(media, parsed.image)
        changes["image"] = new_image
    elif parsed.clear_image:
        changes["image"] = ""

    changes["updatedAt"] = datetime.now(timezone.utc)

    try:
        updated = await db[RECIPES].find_one_and_update(
            {"_id": recipe_oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
    except Exception as e:
        logger.error(f"❌ Update failed: {e}")
        await delete_image_quietly(media, new_image)
        raise HTTPException(status_code=500, detail="Server error")

    if not updated:
        # deleted between the lookup and the write
        await delete_image_quietly(media, new_image)
        raise HTTPException(status_code=404, detail="Recipe not found")

    if "image" in changes and old_image and old_image != changes["image"]:
        await delete_image_quietly(media, old_image)

    logger.info(f"Recipe {recipe_id} updated by {user['_id']}: {sorted(changes)}")
    return RecipeUpdateOut(message="Recipe updated successfully", recipe=_to_recipe_out(updated, user))


async def delete_recipe_handler(db, recipe_id: str, user: dict, media: MediaStore) -> MessageOut:
    """
    Remove the recipe, then its image (best-effort).
    Deleting an already deleted recipe reports 404.
    """
    recipe_oid = _validate_object_id(recipe_id)
    try:
        recipe = await _get_recipe_or_404(db, recipe_oid)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Delete failed loading recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    require_recipe_owner(user, recipe)

    try:
        result = await db[RECIPES].delete_one({"_id": recipe_oid})
    except Exception as e:
        logger.error(f"❌ Delete failed: {e}")
        raise HTTPException(status_code=500, detail="Server error")

    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Recipe not found")

    await delete_image_quietly(media, recipe.get("image"))
    logger.info(f"Recipe {recipe_id} deleted by {user['_id']}")
    return MessageOut(message="Recipe deleted")
