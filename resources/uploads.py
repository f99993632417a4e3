"""
resources/uploads.py -- Disk storage for files posted to /upload.

Stored names are "<field>-<epoch milliseconds><original extension>", e.g.
"file-1706700000000.png". Only the extension of the client's filename is
kept; its directory part and stem are discarded, so a crafted filename cannot
escape the upload folder.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO

from core.errors import UploadError

logger = logging.getLogger("authgate.upload")


def stored_name(field_name: str, original_name: str | None, now_ms: int) -> str:
    base = PureWindowsPath(PurePosixPath(original_name or "").name).name
    return f"{field_name}-{now_ms}{PurePosixPath(base).suffix}"


class UploadStore:
    def __init__(self, folder: str | Path) -> None:
        self.folder = Path(folder)

    def save(self, field_name: str, original_name: str | None, stream: BinaryIO) -> str:
        """Copy stream into the upload folder and return the stored file name."""
        name = stored_name(field_name, original_name, int(time.time() * 1000))
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
            with open(self.folder / name, "wb") as out:
                shutil.copyfileobj(stream, out)
        except OSError as exc:
            logger.error("Upload write failed for %s: %s", name, exc)
            raise UploadError(f"Could not store upload: {exc.strerror or exc}") from exc
        logger.info("Stored upload %s", name)
        return name
