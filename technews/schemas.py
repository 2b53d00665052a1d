from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- Post / Comment fragments embedded in UserDetail ---

class PostTitle(BaseModel):
    title: str


class PostSummary(BaseModel):
    id: int
    title: str
    post_url: str
    created_at: datetime


class CommentSummary(BaseModel):
    id: int
    comment_text: str
    created_at: datetime
    post: PostTitle


# --- User ---

class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserCreate(UserBase):
    password: str = Field(min_length=4, max_length=72)


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str | None = Field(None, min_length=4, max_length=72)


class UserResponse(BaseModel):
    # No password field: the hash can never be serialised through this model.
    id: int
    username: str
    email: str
    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserResponse):
    posts: list[PostSummary] = []
    comments: list[CommentSummary] = []
    voted_posts: list[PostTitle] = []


# --- Auth ---

class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user: UserResponse
    message: str


# --- Misc ---

class MessageResponse(BaseModel):
    message: str


class DeleteResponse(BaseModel):
    deleted: int
