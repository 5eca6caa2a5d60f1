# backend/schemas.py
"""
Request bodies.

The mobile client sends camelCase keys; the models here accept them through
aliases and expose snake_case attributes to the handlers.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Category = Literal["film", "series", "music", "anime", "manga", "book"]


class RequestBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RegisterRequest(RequestBody):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(RequestBody):
    # username or email
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(RequestBody):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)
    bio: str = ""
    avatar_url: Optional[str] = None


class BioRequest(RequestBody):
    bio: str = ""


class PasswordChangeRequest(RequestBody):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class AccountDeleteRequest(RequestBody):
    password: str = Field(..., min_length=1)


class FavoriteRequest(RequestBody):
    category: Category
    title: str = Field(..., min_length=1)
    media_id: Optional[str] = None
    media_image: Optional[str] = None


class RatingRequest(RequestBody):
    media_id: str = Field(..., min_length=1)
    media_type: Category
    media_title: str = Field(..., min_length=1)
    media_image: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ListCreateRequest(RequestBody):
    name: str = Field(..., min_length=1, max_length=200)
    cover_image: Optional[str] = None
    description: Optional[str] = None


class ListUpdateRequest(RequestBody):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    cover_image: Optional[str] = None


class ListItemRequest(RequestBody):
    media_id: str = Field(..., min_length=1)
    media_type: str = Field(..., min_length=1)
    media_title: str = Field(..., min_length=1)
    media_image: Optional[str] = None


class PostRequest(RequestBody):
    media_id: str = Field(..., min_length=1)
    # posts are saved as ratings too, so they share the category enum
    media_type: Category
    media_title: str = Field(..., min_length=1)
    media_image: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    is_favorite: Optional[bool] = None
    first_time: Optional[bool] = None
    has_spoilers: Optional[bool] = None
