import base64
import binascii
import logging
import shutil
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from workout_tracker.config import settings
from workout_tracker.excel.errors import ImageReadError, ImageWriteError

logger = logging.getLogger(__name__)


class ImageManager:
    """Reads exercise images from wherever they live and stores program copies.

    Stored copies go to ``<base_dir>/program_<id>/<filename>``.
    """

    def __init__(
        self,
        base_dir: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_dir = Path(base_dir or settings.IMAGES_DIR)
        self.timeout = timeout if timeout is not None else settings.IMAGE_FETCH_TIMEOUT

    def program_dir(self, program_id: str) -> Path:
        return self.base_dir / f"program_{program_id}"

    async def read_as_bytes(self, ref: str) -> bytes:
        """Return the bytes behind an image reference.

        Accepts ``data:`` URIs, ``http(s)://`` URLs, ``file://`` URIs and
        plain filesystem paths.

        Raises:
            ImageReadError: The reference cannot be read.
        """
        if ref.startswith("data:"):
            return self._decode_data_uri(ref)
        if ref.startswith(("http://", "https://")):
            return await self._fetch(ref)

        path = Path(unquote(urlparse(ref).path)) if ref.startswith("file://") else Path(ref)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ImageReadError(f"Cannot read image file {path}: {e}") from e

    async def write_to_program_storage(
        self, program_id: str, filename: str, data: bytes,
    ) -> str:
        """Store image bytes for a program and return the stored path.

        Raises:
            ImageWriteError: The file cannot be written.
        """
        target = self.program_dir(program_id) / Path(filename).name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise ImageWriteError(f"Cannot write image {target}: {e}") from e
        return str(target)

    async def cleanup(self, program_id: str) -> None:
        """Remove every stored image of a program. Missing directory is fine."""
        directory = self.program_dir(program_id)
        if not directory.exists():
            return
        shutil.rmtree(directory, ignore_errors=True)
        logger.info("Removed stored images of program %s", program_id)

    @staticmethod
    def _decode_data_uri(ref: str) -> bytes:
        header, sep, payload = ref.partition(",")
        if not sep:
            raise ImageReadError("Malformed data URI")
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ImageReadError(f"Invalid base64 image data: {e}") from e
        return unquote(payload).encode()

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ImageReadError(f"Cannot fetch image {url}: {e}") from e

        if response.status_code >= 400:
            raise ImageReadError(
                f"Image request failed ({response.status_code}): {url}"
            )
        return response.content
