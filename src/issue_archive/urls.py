from __future__ import annotations

import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

_REMOTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_remote_url(url: str) -> bool:
    return bool(_REMOTE_URL.match(url))


def safe_filename_piece(text: str, *, max_len: int = 120) -> str:
    text = text.strip()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^A-Za-z0-9._-]+", "-", text)
    text = re.sub(r"-+", "-", text).strip("-")
    if not text:
        return ""
    return text[:max_len]


def filename_from_url(url: str) -> str:
    """Last path segment of ``url``, made safe for the local filesystem.

    Query strings and fragments never contribute. Returns ``image`` when the
    path has no usable segment (e.g. ``https://host/``).
    """

    try:
        path = urlparse(url).path
    except ValueError:
        return "image"
    name = PurePosixPath(unquote(path)).name
    return safe_filename_piece(name) or "image"


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``name.ext`` into ``("name", ".ext")``; a missing stem is ``image``."""

    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename or "image", ""
    if not stem:
        return "image", f".{ext}" if ext else ""
    if not ext:
        return stem, ""
    return stem, f".{ext}"


def extension_from_content_type(content_type: str | None) -> str:
    """Map an ``image/*`` content type to a file extension, else ``""``."""

    if not content_type:
        return ""
    media_type = content_type.split(";", 1)[0].strip().lower()
    main, _, subtype = media_type.partition("/")
    if main != "image" or not subtype:
        return ""
    if subtype == "jpeg":
        return ".jpg"
    return f".{subtype}"
