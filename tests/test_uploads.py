import asyncio
import io
import re

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

import uploads
from errors import ValidationError


def make_upload(filename, content_type, data=b"data"):
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_stored_filename_keeps_only_the_extension():
    name = uploads.stored_filename("My Holiday.MP4")
    assert re.fullmatch(r"\d+-\d+\.MP4", name)
    assert "Holiday" not in name


def test_stored_filenames_differ():
    assert len({uploads.stored_filename("a.mp4") for _ in range(50)}) == 50


@pytest.mark.parametrize("filename,content_type", [
    ("clip.mp4", "video/mp4"),
    ("clip.webm", "video/webm"),
    ("CLIP.AVI", "video/avi"),
])
def test_accepts_video_types(filename, content_type):
    uploads.check_video(make_upload(filename, content_type))


@pytest.mark.parametrize("filename,content_type", [
    ("notes.txt", "text/plain"),
    ("clip.mp4", "text/plain"),
    ("photo.png", "video/mp4"),
])
def test_rejects_non_videos(filename, content_type):
    with pytest.raises(ValidationError, match="Only video files"):
        uploads.check_video(make_upload(filename, content_type))


def test_image_types():
    uploads.check_image(make_upload("cat.jpg", "image/jpeg"))
    with pytest.raises(ValidationError, match="Only image files"):
        uploads.check_image(make_upload("cat.bmp", "image/bmp"))


def test_save_upload_writes_file(tmp_path):
    name = asyncio.run(uploads.save_upload(make_upload("clip.mp4", "video/mp4", b"x" * 10), tmp_path / "videos", 100))
    assert (tmp_path / "videos" / name).read_bytes() == b"x" * 10


def test_save_upload_rejects_oversized_files(tmp_path):
    with pytest.raises(ValidationError, match="too large"):
        asyncio.run(uploads.save_upload(make_upload("clip.mp4", "video/mp4", b"x" * 101), tmp_path, 100))
    assert list(tmp_path.iterdir()) == []
