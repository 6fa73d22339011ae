"""Local file storage for uploads (medical reports, crop photos and soil reports) under UPLOAD_DIR."""
from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import BinaryIO

from .auth_models import new_uuid
from .config import get_settings

logger = logging.getLogger(__name__)

CHUNK_BYTES = 64 * 1024


def safe_filename(filename: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", Path(filename).name)


def upload_target(folder: str, filename: str) -> Path:
    """A fresh path UPLOAD_DIR/<folder>/<uuid>_<name>; the folder is created."""
    base = Path(get_settings().upload_dir) / folder
    base.mkdir(parents=True, exist_ok=True)
    return base / f"{new_uuid()}_{safe_filename(filename)}"


def store_stream(folder: str, filename: str, data: bytes | BinaryIO, max_bytes: int, too_big: str) -> Path:
    """
    Copies `data` to a new file under `folder` in chunks.
    Raises ValueError(too_big) and removes the partial file once more than
    `max_bytes` have been read; the rest of the stream is left unread.
    """
    stream = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
    target = upload_target(folder, filename)
    size = 0
    try:
        with target.open("wb") as out:
            while True:
                chunk = stream.read(CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValueError(too_big)
                out.write(chunk)
    except ValueError:
        target.unlink(missing_ok=True)
        raise
    logger.debug("Stored upload %s (%d bytes)", target, size)
    return target


def decode_base64(data: str) -> bytes:
    """Accepts plain base64 or a data URL."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Image is not valid base64 data.") from None
