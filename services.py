"""
Request handlers.

Each function takes the record store (and the auth gate where needed), reads
or mutates it, and returns a JSON-ready payload. Failures are raised as
errors.AppError subclasses.
"""

import logging
import os
from typing import List, Optional

from auth import AuthGate
from database import RecordStore
from errors import DuplicateError, NotFound, Unauthenticated, ValidationError
from sanitize import sanitize_input
from schemas import Comment, User, Video

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
VIDEO_URL_PREFIX = "/uploads/videos/"
IMAGE_URL_PREFIX = "/uploads/images/"
DEFAULT_THUMBNAIL = "/uploads/videos/default-thumb.jpg"


# ------------------- Serialization -------------------
def public_user(doc: dict) -> dict:
    return {"id": doc["id"], "username": doc["username"], "email": doc["email"]}


def video_payload(doc: dict) -> dict:
    return {
        **doc,
        "url": VIDEO_URL_PREFIX + os.path.basename(doc["filename"]),
        "thumbnail": doc.get("thumbnail") or DEFAULT_THUMBNAIL,
    }


def comment_payload(doc: dict) -> dict:
    image = doc.get("image")
    return {**doc, "image": IMAGE_URL_PREFIX + os.path.basename(image) if image else None}


# ------------------- Auth -------------------
def register_user(store: RecordStore, auth: AuthGate, username: Optional[str], email: Optional[str], password: Optional[str]) -> dict:
    if not username or not email or not password:
        raise ValidationError("All fields are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    username = sanitize_input(username)
    email = sanitize_input(email)
    users = store["users"]
    if users.find_one({"email": email}):
        raise DuplicateError("Email already registered")
    if users.find_one({"username": username}):
        raise DuplicateError("Username already taken")

    user = User(username=username, email=email, password_hash=auth.hash_password(password))
    doc = store.create_document("users", user.model_dump())
    logger.info("Registered user %s (%s)", doc["username"], doc["id"])
    return {
        "message": "User registered successfully",
        "token": auth.issue_token(doc),
        "user": public_user(doc),
    }


def login_user(store: RecordStore, auth: AuthGate, email: Optional[str], password: Optional[str]) -> dict:
    if not email or not password:
        raise ValidationError("All fields are required")

    doc = store["users"].find_one({"email": sanitize_input(email)})
    if not doc or not auth.verify_password(password, doc["password_hash"]):
        logger.info("Failed login for %s", email)
        raise Unauthenticated("Invalid credentials")
    return {
        "message": "Login successful",
        "token": auth.issue_token(doc),
        "user": public_user(doc),
    }


# ------------------- Videos -------------------
def list_videos(store: RecordStore) -> List[dict]:
    return [video_payload(v) for v in store["videos"]]


def get_video(store: RecordStore, video_id: str) -> dict:
    doc = store["videos"].find_one({"id": sanitize_input(video_id)})
    if not doc:
        raise NotFound("Video not found")
    return video_payload(doc)


def create_video(store: RecordStore, identity: dict, title: Optional[str], description: Optional[str], filename: str) -> dict:
    if not title:
        raise ValidationError("Title is required")
    video = Video(
        title=sanitize_input(title),
        description=sanitize_input(description or ""),
        filename=filename,
        user_id=identity["id"],
        author=identity["username"],
    )
    doc = store.create_document("videos", video.model_dump())
    logger.info("Video %s uploaded by %s", doc["id"], doc["author"])
    return video_payload(doc)


def record_view(store: RecordStore, video_id: str) -> None:
    """Add one view. Unknown ids are ignored and nothing is persisted."""
    doc = store["videos"].find_one({"id": sanitize_input(video_id)})
    if doc is None:
        return

    def increment(_collection):
        doc["views"] = doc.get("views", 0) + 1

    store.mutate("videos", increment)


# ------------------- Comments -------------------
def list_comments(store: RecordStore, video_id: str) -> List[dict]:
    return [comment_payload(c) for c in store["comments"].find({"video_id": sanitize_input(video_id)})]


def create_comment(store: RecordStore, identity: dict, video_id: Optional[str], text: Optional[str], image: Optional[str] = None) -> dict:
    # video_id is stored as given; it need not name an existing video
    if not video_id or not text:
        raise ValidationError("Video ID and text are required")
    comment = Comment(
        video_id=sanitize_input(video_id),
        text=sanitize_input(text),
        image=image,
        user_id=identity["id"],
        author=identity["username"],
    )
    doc = store.create_document("comments", comment.model_dump())
    return comment_payload(doc)
