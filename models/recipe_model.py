from pydantic import BaseModel, Field, validator
from typing import List, Optional, Union
from bson import ObjectId
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    DESSERT = "Dessert"
    SNACK = "Snack"
    APPETIZER = "Appetizer"


CATEGORIES = [c.value for c in Category]


class CreatorOut(BaseModel):
    """Expanded `createdBy` reference"""
    id: str = Field(alias="_id")
    username: Optional[str] = None
    email: Optional[str] = None

    @validator("id", pre=True, always=True)
    def convert_objectid(cls, v):
        if isinstance(v, ObjectId):
            return str(v)
        return v

    class Config:
        populate_by_name = True


class RecipeOut(BaseModel):
    id: str = Field(alias="_id")
    title: str
    description: Optional[str] = ""
    ingredients: List[str] = Field(default_factory=list)
    instructions: str
    category: str
    cookingTime: Optional[int] = None
    image: Optional[str] = None
    createdBy: Optional[Union[CreatorOut, str]] = None
    likedBy: List[str] = Field(default_factory=list)
    likedByUser: bool = False
    likes: int = 0
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @validator("id", "createdBy", pre=True, always=True)
    def convert_objectid(cls, v):
        if isinstance(v, ObjectId):
            return str(v)
        return v

    @validator("likedBy", pre=True, always=True)
    def convert_liked_by(cls, v):
        return [str(user_id) for user_id in (v or [])]

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "_id": "665f1c2e9b1e8a3d4c5b6a70",
                "title": "Pasta",
                "description": "Weeknight pasta",
                "ingredients": ["pasta", "salt"],
                "instructions": "Boil.",
                "category": "Dinner",
                "cookingTime": 15,
                "image": "https://res.cloudinary.com/demo/image/upload/v1/Recipedia-Images/recipe-1.jpg",
                "createdBy": {"_id": "665f1c2e9b1e8a3d4c5b6a6f", "username": "chef"},
                "likedBy": [],
                "likedByUser": False,
                "likes": 0
            }
        }


class RecipeUpdateOut(BaseModel):
    message: str
    recipe: RecipeOut


class LikeOut(BaseModel):
    """Response for like/unlike toggles"""
    likedByUser: bool
    likes: int


class MessageOut(BaseModel):
    message: str
