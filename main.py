import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

import services
import uploads
from auth import AuthGate, get_auth, get_current_user
from config import Settings, configure_logging
from database import JSONFileStorage, RecordStore
from errors import AppError, ValidationError
from ratelimit import RateLimiter, enforce_api_rate_limit, enforce_auth_rate_limit
from schemas import (
    AuthResponse,
    CommentList,
    CommentPosted,
    LoginRequest,
    RegisterRequest,
    VideoList,
    VideoResponse,
    VideoUploaded,
    ViewRecorded,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(enforce_api_rate_limit)])


# ------------------- Dependencies -------------------
def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ------------------- Auth -------------------
@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def register(
    payload: RegisterRequest,
    store: RecordStore = Depends(get_store),
    auth: AuthGate = Depends(get_auth),
):
    return services.register_user(store, auth, payload.username, payload.email, payload.password)


@router.post("/auth/login", response_model=AuthResponse, dependencies=[Depends(enforce_auth_rate_limit)])
def login(
    payload: LoginRequest,
    store: RecordStore = Depends(get_store),
    auth: AuthGate = Depends(get_auth),
):
    return services.login_user(store, auth, payload.email, payload.password)


# ------------------- Videos -------------------
@router.get("/videos", response_model=VideoList)
def list_videos(store: RecordStore = Depends(get_store)):
    return {"videos": services.list_videos(store)}


@router.post("/videos/upload", response_model=VideoUploaded, status_code=201)
async def upload_video(
    video: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: dict = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if video is None:
        raise ValidationError("No video file uploaded")
    if not title:
        raise ValidationError("Title is required")
    uploads.check_video(video)
    filename = await uploads.save_upload(video, settings.video_dir, settings.max_upload_bytes)
    doc = await run_in_threadpool(services.create_video, store, current_user, title, description, filename)
    return {"message": "Video uploaded successfully", "video": doc}


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(video_id: str, store: RecordStore = Depends(get_store)):
    return {"video": services.get_video(store, video_id)}


@router.post("/videos/{video_id}/view", response_model=ViewRecorded)
def record_view(video_id: str, store: RecordStore = Depends(get_store)):
    services.record_view(store, video_id)
    return {"success": True}


# ------------------- Comments -------------------
@router.get("/videos/{video_id}/comments", response_model=CommentList)
def list_comments(video_id: str, store: RecordStore = Depends(get_store)):
    return {"comments": services.list_comments(store, video_id)}


@router.post("/comments", response_model=CommentPosted, status_code=201)
async def post_comment(
    video_id: Optional[str] = Form(None, alias="videoId"),
    text: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not video_id or not text:
        raise ValidationError("Video ID and text are required")
    image_name = None
    if image is not None:
        uploads.check_image(image)
        image_name = await uploads.save_upload(image, settings.image_dir, settings.max_upload_bytes)
    doc = await run_in_threadpool(services.create_comment, store, current_user, video_id, text, image_name)
    return {"message": "Comment posted successfully", "comment": doc}


# ------------------- Error handling -------------------
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return JSONResponse(status_code=400, content={"message": "; ".join(problems) or "Invalid request"})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


# ------------------- App -------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.video_dir.mkdir(parents=True, exist_ok=True)
        settings.image_dir.mkdir(parents=True, exist_ok=True)
        app.state.store.load()
        logger.info("Tipsy API ready (data in %s)", settings.data_dir)
        yield

    app = FastAPI(title="Tipsy API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = RecordStore(JSONFileStorage(settings.data_dir))
    app.state.auth = AuthGate(
        settings.secret_key,
        expire_minutes=settings.token_expire_minutes,
        hash_rounds=settings.password_hash_rounds,
    )
    app.state.api_limiter = RateLimiter(
        settings.api_rate_limit_max_requests,
        settings.api_rate_limit_window_seconds,
        "Too many requests, please try again later.",
    )
    app.state.auth_limiter = RateLimiter(
        settings.auth_rate_limit_max_requests,
        settings.auth_rate_limit_window_seconds,
        "Too many authentication attempts, please try again later.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)

    # Mount static uploads directory; it is created at startup
    app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir), check_dir=False), name="uploads")

    @app.get("/")
    def read_root():
        return {"message": "Tipsy backend running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
