"""Avatar ingestion: stage, decode, resize, publish and attach to an account."""

from __future__ import annotations

import logging
import os
import re
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol

from PIL import Image, UnidentifiedImageError

from .contracts import AvatarUpload
from .errors import ServerError, ValidationError, ValidationFailure

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_FALLBACK_FORMAT = "PNG"
_FALLBACK_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


class AvatarStore(Protocol):
    def set_avatar_url(self, account_id: str, avatar_url: str) -> None: ...


class AvatarPipeline:
    """Turn an uploaded image into a square avatar referenced by the account.

    The transient upload file belongs to a single ``ingest`` call and is
    removed on every exit path. Publishing into ``avatars_dir`` goes through
    a staging name and ``os.replace`` so readers never observe a partial file.
    If the account update fails after publishing, the published file is
    removed again before the error propagates.
    """

    def __init__(
        self,
        repository: AvatarStore,
        *,
        tmp_dir: str | os.PathLike[str],
        avatars_dir: str | os.PathLike[str],
        size: int = 250,
        max_bytes: int = 1048576,
        url_prefix: str = "avatars",
    ) -> None:
        self._repository = repository
        self._tmp_dir = Path(tmp_dir)
        self._avatars_dir = Path(avatars_dir)
        self._size = size
        self._max_bytes = max_bytes
        self._url_prefix = url_prefix.strip("/")

    def ensure_directories(self) -> None:
        self._tmp_dir.mkdir(parents=True, exist_ok=True)
        self._avatars_dir.mkdir(parents=True, exist_ok=True)

    def ingest(self, upload: AvatarUpload) -> str:
        """Process ``upload`` and return the account's new avatar URL."""
        self.ensure_directories()
        with self._transient_file(upload.filename) as tmp_path:
            self._stage(upload.stream, tmp_path)
            image_format = self._transform(tmp_path)
            name = self.destination_name(upload.account_id, upload.filename, image_format)
            final_path = self._publish(tmp_path, name)
            avatar_url = f"{self._url_prefix}/{name}"
            try:
                self._repository.set_avatar_url(upload.account_id, avatar_url)
            except Exception:
                logger.warning("avatar update failed for %s, removing %s", upload.account_id, final_path)
                final_path.unlink(missing_ok=True)
                raise

        logger.info("avatar updated for account %s", upload.account_id)
        if upload.previous_url and upload.previous_url != avatar_url:
            self._discard(upload.previous_url)
        return avatar_url

    def destination_name(self, account_id: str, filename: str, image_format: str | None = None) -> str:
        """Derive a fresh permanent file name from the account id and original filename.

        A random component keeps every publish on a new path, so the file the
        account currently references is never overwritten.
        """
        base = Path(filename.replace("\\", "/")).name
        safe = _UNSAFE_CHARS.sub("_", base).strip("._") or "avatar"
        if image_format:
            safe = self._with_extension(safe, image_format)
        return f"{account_id}_{uuid.uuid4().hex[:12]}_{safe}"

    @staticmethod
    def _with_extension(name: str, image_format: str) -> str:
        """Make ``name``'s suffix agree with the format the file is written in."""
        stem, suffix = os.path.splitext(name)
        extensions = Image.registered_extensions()
        if extensions.get(suffix.lower()) == image_format:
            return name
        matching = [ext for ext, fmt in extensions.items() if fmt == image_format]
        if not matching:
            return name
        preferred = f".{image_format.lower()}"
        extension = preferred if preferred in matching else matching[0]
        return f"{stem or name}{extension}"

    @contextmanager
    def _transient_file(self, filename: str) -> Iterator[Path]:
        suffix = Path(filename).suffix.lower()
        path = self._tmp_dir / f"{uuid.uuid4().hex}{suffix}"
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)

    def _stage(self, stream: BinaryIO, path: Path) -> None:
        written = 0
        with open(path, "wb") as handle:
            while True:
                chunk = stream.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self._max_bytes:
                    raise ValidationError(
                        f"Avatar exceeds {self._max_bytes} bytes",
                        reason=ValidationFailure.avatar_too_large,
                    )
                handle.write(chunk)
        if written == 0:
            raise ValidationError("Unsupported image", reason=ValidationFailure.unsupported_image)

    def _transform(self, path: Path) -> str:
        """Resize the image at ``path`` in place and return the format it was written in.

        Formats Pillow can read but not write are re-encoded as PNG.
        """
        try:
            with Image.open(path) as image:
                image.load()
                image_format = image.format or _FALLBACK_FORMAT
                resized = image.resize((self._size, self._size))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise ValidationError(
                "Unsupported image", reason=ValidationFailure.unsupported_image
            ) from exc

        if image_format not in Image.SAVE:
            image_format = _FALLBACK_FORMAT
            if resized.mode not in _FALLBACK_MODES:
                resized = resized.convert("RGBA")

        try:
            resized.save(path, format=image_format)
        except KeyError as exc:
            raise ValidationError(
                "Unsupported image", reason=ValidationFailure.unsupported_image
            ) from exc
        except (OSError, ValueError) as exc:
            raise ServerError("failed to write resized avatar") from exc
        return image_format

    def _publish(self, tmp_path: Path, name: str) -> Path:
        final_path = self._avatars_dir / name
        staging = self._avatars_dir / f".{uuid.uuid4().hex}.partial"
        try:
            shutil.move(os.fspath(tmp_path), os.fspath(staging))
            os.replace(staging, final_path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            raise ServerError("failed to store avatar") from exc
        return final_path

    def _discard(self, previous_url: str) -> None:
        prefix = f"{self._url_prefix}/"
        if not previous_url.startswith(prefix):
            return
        previous = self._avatars_dir / Path(previous_url[len(prefix):]).name
        try:
            previous.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("could not remove previous avatar %s: %s", previous, exc)
