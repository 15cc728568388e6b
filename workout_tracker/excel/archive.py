"""Program archives: a workbook bundled with the images it references.

Archive layout::

    <program>.xlsx          the workbook, image cells pointing at images/...
    images/image_0.jpg
    images/image_1.png
    ...

The Informations sheet carries ``Export Type = WITH_IMAGES`` so the reader
knows the images/ entries belong to the program.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import zipfile
from pathlib import PurePosixPath
from typing import Protocol
from urllib.parse import urlparse

from workout_tracker.excel.config import (
    ARCHIVE_IMAGES_PREFIX,
    EXPORT_TYPE_WITH_IMAGES,
    SPREADSHEET_EXTENSION,
)
from workout_tracker.excel.errors import ArchiveError, ImageReadError, ImageWriteError
from workout_tracker.excel.reader import ProgramReader
from workout_tracker.excel.writer import ProgramWriter
from workout_tracker.schemas.program import Program
from workout_tracker.schemas.settings import MaxWeights
from workout_tracker.utils.file_names import safe_token

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSION = "jpg"


class ImageStore(Protocol):
    """Where image bytes come from on export and go to on import."""

    async def read_as_bytes(self, ref: str) -> bytes: ...

    async def write_to_program_storage(
        self, program_id: str, filename: str, data: bytes,
    ) -> str: ...


def image_extension(ref: str) -> str:
    """Extension of an image reference, without the dot.

    E.g. '/x/photo.PNG' -> 'png', 'https://h/a.webp?s=1' -> 'webp',
    'data:image/gif;base64,...' -> 'gif', 'blob:abc' -> 'jpg'.
    """
    if ref.startswith("data:"):
        mime = ref[5:].split(";", 1)[0].split(",", 1)[0]
        guessed = mimetypes.guess_extension(mime) if mime else None
        if guessed:
            return "jpg" if guessed in (".jpe", ".jpeg") else guessed.lstrip(".")
        return DEFAULT_IMAGE_EXTENSION

    path = urlparse(ref).path if "://" in ref else ref
    suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower().lstrip(".")
    if suffix and suffix.isalnum() and len(suffix) <= 5:
        return suffix
    return DEFAULT_IMAGE_EXTENSION


def rewrite_image_references(program: Program, mapping: dict[str, str]) -> Program:
    """Return a deep copy with every mapped image reference replaced.

    References missing from ``mapping`` (e.g. external URLs) are kept.
    """
    copy = program.model_copy(deep=True)
    for _, _, exercise in copy.iter_exercises():
        exercise.images = [mapping.get(ref, ref) for ref in exercise.images]
    return copy


def _archive_entry_filename(entry_name: str) -> str:
    """Flatten an images/ entry into a single file name.

    E.g. 'images/image_0.jpg' -> 'image_0.jpg', 'images/a/b.png' -> 'a_b.png'.
    """
    relative = entry_name[len(ARCHIVE_IMAGES_PREFIX):]
    parts = [p for p in PurePosixPath(relative).parts if p not in ("", ".", "..")]
    return "_".join(parts)


class ProgramArchive:
    """Reads and writes program archives through an ImageStore."""

    def __init__(self, images: ImageStore) -> None:
        self._images = images

    async def export_program(self, program: Program, max_weights: MaxWeights) -> bytes:
        """Bundle the program workbook and its images into zip bytes.

        Each distinct reference is stored once as images/image_<n>.<ext>,
        numbered in first-seen order. An image that cannot be read is logged
        and its reference is left pointing at the original location.
        """
        mapping: dict[str, str] = {}
        buf = io.BytesIO()

        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for ref in program.image_references():
                try:
                    data = await self._images.read_as_bytes(ref)
                except ImageReadError as e:
                    logger.error("Image %s not archived, keeping reference: %s", ref, e)
                    continue

                entry = f"{ARCHIVE_IMAGES_PREFIX}image_{len(mapping)}.{image_extension(ref)}"
                zf.writestr(entry, data)
                mapping[ref] = entry

            archived = rewrite_image_references(program, mapping)
            workbook = ProgramWriter.write_program(
                archived, max_weights, export_type=EXPORT_TYPE_WITH_IMAGES,
            )
            zf.writestr(f"{safe_token(program.name)}{SPREADSHEET_EXTENSION}", workbook)

        logger.info(
            "Archived program '%s' with %d/%d images",
            program.name, len(mapping), len(program.image_references()),
        )
        return buf.getvalue()

    async def import_program(self, content: bytes, program_id: str) -> Program:
        """Read a program archive and extract its images.

        Images are written to the storage of ``program_id`` and exercise
        references to them are rewritten to the local paths. An image that
        cannot be extracted is logged and skipped.

        Raises:
            ArchiveError: The archive holds no workbook.
            InterchangeError: Structural problems in the workbook.
        """
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            entry = self._find_workbook_entry(zf)
            if entry is None:
                raise ArchiveError("No spreadsheet found in the archive")

            program, metadata = ProgramReader.read_workbook(zf.read(entry), program_id)
            if metadata.export_type != EXPORT_TYPE_WITH_IMAGES:
                return program

            mapping: dict[str, str] = {}
            for info in zf.infolist():
                if info.is_dir() or not info.filename.startswith(ARCHIVE_IMAGES_PREFIX):
                    continue
                filename = _archive_entry_filename(info.filename)
                if not filename:
                    continue
                try:
                    data = zf.read(info)
                    mapping[info.filename] = await self._images.write_to_program_storage(
                        program_id, filename, data,
                    )
                except (ImageWriteError, zipfile.BadZipFile) as e:
                    logger.error("Image %s not extracted: %s", info.filename, e)

        logger.info(
            "Extracted %d images for program '%s' (%s)",
            len(mapping), program.name, program_id,
        )
        return rewrite_image_references(program, mapping)

    @staticmethod
    def _find_workbook_entry(zf: zipfile.ZipFile) -> str | None:
        for info in zf.infolist():
            name = info.filename
            if info.is_dir() or name.startswith("__MACOSX/"):
                continue
            if name.lower().endswith(SPREADSHEET_EXTENSION):
                return name
        return None
