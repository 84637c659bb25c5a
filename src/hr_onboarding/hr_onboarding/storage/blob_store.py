from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from werkzeug.utils import secure_filename

from ..common.datetime_utils import now_local
from ..core.constants import ALLOWED_UPLOAD_EXTENSIONS, MAX_UPLOAD_BYTES
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobMetadata:
    filename: str
    content_type: Optional[str] = None
    owner: Optional[str] = None


class BlobStore(Protocol):
    def upload(self, data: bytes, metadata: BlobMetadata) -> str:
        """Store the bytes and return a URL; callers persist only the URL."""

        raise NotImplementedError


def check_upload(data: bytes, filename: str) -> str:
    """Validate size and extension; returns the sanitised file name."""

    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit")
    safe = secure_filename(filename or "")
    ext = safe.rsplit(".", 1)[-1].lower() if "." in safe else ""
    if ext not in ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError(f"File type not allowed (allowed: {', '.join(sorted(ALLOWED_UPLOAD_EXTENSIONS))})")
    return safe


class LocalBlobStore(BlobStore):
    """Development store: writes under ``root`` and serves from ``base_url``.

    Layout: <owner>/<yyyy>/<mm>/<12 hex>_<filename>
    """

    def __init__(self, root: str | Path, base_url: str):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    def upload(self, data: bytes, metadata: BlobMetadata) -> str:
        safe = check_upload(data, metadata.filename)
        now = now_local()
        owner = secure_filename(metadata.owner or "") or "shared"
        relative = Path(owner) / f"{now.year}" / f"{now.month:02d}" / f"{uuid.uuid4().hex[:12]}_{safe}"

        target = self._root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored upload %s (%d bytes)", relative.as_posix(), len(data))
        return f"{self._base_url}/{relative.as_posix()}"
