"""
Catdex — Upload Ingestor
==========================

What:  Splits a parsed multipart form into text and file fields and writes the
       `image` file part into the image directory.
Why:   The image directory is a filesystem namespace shared by concurrent
       requests; this class is the only writer and guarantees unique names.
How:   Server-chosen names (<uuid4 hex><suffix>) opened in exclusive-create
       mode, written in chunks through aiofiles on the blocking worker pool.
Who:   Called by CatService during POST /api/add_cat, after validation.

Naming:
    Client filenames are never used as-is. Only the extension is kept, and
    only when it is short and alphanumeric:
        cat.png      → /image/5f0c…e1.png
        ../../x.sh;  → /image/9a3d…07      (suffix dropped)

    The stored image_path is the public URL prefix joined with the generated
    name. It never carries the filesystem location or a leading "." segment.
"""

import logging
import os
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
from starlette.datastructures import FormData, UploadFile

from catdex.exceptions import UnexpectedError, ValidationError
from catdex.workers import BlockingExecutor

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_SUFFIX_RE = re.compile(r"^\.[a-z0-9]{1,10}$")

# Attempts at a fresh random name if exclusive-create finds the name taken
_MAX_NAME_ATTEMPTS = 3


@dataclass
class UploadForm:
    """
    Multipart parts partitioned by kind.

    texts:  field name → value. A repeated text field resolves to its last value.
    files:  field name → file parts in arrival order.
    """
    texts: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, List[UploadFile]] = field(default_factory=dict)


@dataclass
class StoredImage:
    path: Path        # absolute filesystem path
    image_path: str   # public URL path persisted in the database
    size: int


class UploadIngestor:
    """
    Persists uploaded images into `image_dir`, served publicly under `url_prefix`.
    """

    def __init__(
        self,
        image_dir: str,
        url_prefix: str,
        max_bytes: int,
        executor: BlockingExecutor,
    ):
        self.image_dir = Path(image_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        self.executor = executor
        self.image_dir.mkdir(parents=True, exist_ok=True)
        logger.info("UploadIngestor initialized with image_dir=%s", self.image_dir)

    @staticmethod
    def extract_fields(form: FormData) -> UploadForm:
        """Partition parsed multipart items into text fields and file fields."""
        parsed = UploadForm()
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                parsed.files.setdefault(name, []).append(value)
            else:
                # Last value wins for repeated text fields
                parsed.texts[name] = value
        return parsed

    def _generate_name(self, filename: Optional[str]) -> str:
        suffix = Path(filename or "").suffix.lower()
        if not _SUFFIX_RE.match(suffix):
            suffix = ""
        return f"{uuid.uuid4().hex}{suffix}"

    def public_path(self, stored: Path) -> str:
        """Public URL path of a file stored under image_dir."""
        relative = stored.resolve().relative_to(self.image_dir)
        return f"{self.url_prefix}/{relative.as_posix()}"

    def resolve(self, image_path: str) -> Path:
        """
        Map a stored public image_path back to its file on disk.

        Raises:
            ValidationError: The path is not under the public prefix, or is not
                             a plain file name.
        """
        prefix = self.url_prefix + "/"
        name = image_path[len(prefix):] if image_path.startswith(prefix) else ""
        if not name or "/" in name or name in (".", ".."):
            raise ValidationError(
                message="Invalid image path",
                field="image_path",
                context={"image_path": image_path},
            )
        return self.image_dir / name

    async def store_image(self, upload: UploadFile) -> StoredImage:
        """
        Write one uploaded file to a new, uniquely named file in image_dir.

        Raises:
            ValidationError: The upload exceeds max_bytes.
            UnexpectedError: The file could not be written; any partial file is removed.
        """
        if upload.size is not None and upload.size > self.max_bytes:
            raise ValidationError(
                message=f"Upload exceeds the maximum size of {self.max_bytes} bytes",
                field="image",
                context={"size": upload.size, "max_bytes": self.max_bytes},
            )

        await upload.seek(0)
        for attempt in range(1, _MAX_NAME_ATTEMPTS + 1):
            target = self.image_dir / self._generate_name(upload.filename)
            try:
                size = await self._write(upload, target)
                break
            except FileExistsError:
                logger.warning("Generated name %s already exists (attempt %d)", target.name, attempt)
                continue
            except ValidationError:
                await self._discard(target)
                raise
            except OSError as e:
                await self._discard(target)
                logger.error("Failed to store upload at %s: %s", target, e)
                raise UnexpectedError(
                    operation="store_image",
                    context={"path": str(target), "os_error": str(e)},
                ) from e
        else:
            raise UnexpectedError(
                operation="store_image",
                context={"reason": "no free file name", "attempts": _MAX_NAME_ATTEMPTS},
            )

        stored = StoredImage(path=target, image_path=self.public_path(target), size=size)
        logger.info("Image stored: %s (%d bytes)", stored.image_path, size)
        return stored

    async def _write(self, upload: UploadFile, target: Path) -> int:
        written = 0
        # "xb": exclusive create, never overwrites a file another request wrote
        async with aiofiles.open(target, "xb", executor=self.executor.executor) as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_bytes:
                    raise ValidationError(
                        message=f"Upload exceeds the maximum size of {self.max_bytes} bytes",
                        field="image",
                        context={"max_bytes": self.max_bytes},
                    )
                await out.write(chunk)
        return written

    async def _discard(self, path: Path) -> None:
        """Remove a partially written file. Failure is logged, not raised."""
        try:
            await self.executor.run(_unlink_if_exists, path)
        except OSError as e:
            logger.warning("Failed to remove partial upload %s: %s", path, e)


def _unlink_if_exists(path: Path) -> None:
    if path.exists():
        os.remove(path)
