"""
Record and API schemas for Tipsy

Each record model describes one stored collection. The store adds ``id`` and
``created_at`` when a record is created.

Collections:
- User -> users
- Video -> videos
- Comment -> comments
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


# ------------------- Stored records -------------------
class User(BaseModel):
    """
    Registered users
    Collection name: "users"
    """
    username: str = Field(..., description="Unique, sanitized")
    email: str = Field(..., description="Unique, sanitized")
    password_hash: str = Field(..., description="pbkdf2_sha256 hash")


class Video(BaseModel):
    """
    Uploaded videos
    Collection name: "videos"
    """
    title: str
    description: str = ""
    filename: str = Field(..., description="Stored file name under uploads/videos")
    thumbnail: Optional[str] = None
    user_id: str
    author: str = Field(..., description="Uploader's username when the video was created")
    views: int = Field(0, ge=0)


class Comment(BaseModel):
    """
    Comments on videos
    Collection name: "comments"
    """
    video_id: str = Field(..., description="Not checked against existing videos")
    text: str
    image: Optional[str] = Field(None, description="Stored file name under uploads/images")
    user_id: str
    author: str


# ------------------- Requests -------------------
class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


# ------------------- Responses -------------------
class UserPublic(BaseModel):
    id: str
    username: str
    email: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserPublic


class VideoPublic(BaseModel):
    id: str
    title: str
    description: str = ""
    filename: str
    url: str
    thumbnail: str
    user_id: str
    author: str
    views: int
    created_at: str


class VideoList(BaseModel):
    videos: List[VideoPublic]


class VideoResponse(BaseModel):
    video: VideoPublic


class VideoUploaded(VideoResponse):
    message: str


class ViewRecorded(BaseModel):
    success: bool = True


class CommentPublic(BaseModel):
    id: str
    video_id: str
    text: str
    image: Optional[str] = None
    user_id: str
    author: str
    created_at: str


class CommentList(BaseModel):
    comments: List[CommentPublic]


class CommentPosted(BaseModel):
    message: str
    comment: CommentPublic
