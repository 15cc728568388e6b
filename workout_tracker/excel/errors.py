"""Interchange failures that abort an import or export."""

import enum


class ImportErrorCode(str, enum.Enum):
    MISSING_METADATA = "missing_metadata"
    MISSING_PROGRAM_NAME = "missing_program_name"
    NO_VALID_DAYS = "no_valid_days"
    NO_SPREADSHEET_IN_ARCHIVE = "no_spreadsheet_in_archive"
    UNSUPPORTED_FILE = "unsupported_file"
    UNREADABLE_FILE = "unreadable_file"
    EXPORT_FAILED = "export_failed"
    ALREADY_EXISTS = "already_exists"


class InterchangeError(Exception):
    """Base exception for interchange errors."""

    code: ImportErrorCode = ImportErrorCode.UNREADABLE_FILE

    def __init__(self, message: str, code: ImportErrorCode | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class MissingMetadataError(InterchangeError):
    """Raised when the Informations sheet or its value row is missing."""

    code = ImportErrorCode.MISSING_METADATA


class MissingProgramNameError(InterchangeError):
    """Raised when the program name cell is blank."""

    code = ImportErrorCode.MISSING_PROGRAM_NAME


class NoValidDaysError(InterchangeError):
    """Raised when no selected day survives parsing."""

    code = ImportErrorCode.NO_VALID_DAYS


class ArchiveError(InterchangeError):
    """Raised when an archive holds no spreadsheet."""

    code = ImportErrorCode.NO_SPREADSHEET_IN_ARCHIVE


class UnsupportedFileError(InterchangeError):
    """Raised when a file is neither a spreadsheet nor an archive."""

    code = ImportErrorCode.UNSUPPORTED_FILE


class ProgramAlreadyExistsError(InterchangeError):
    """Raised when a program name is already taken (case-insensitive)."""

    code = ImportErrorCode.ALREADY_EXISTS


class AssetError(Exception):
    """Base exception for image asset failures. Never aborts an import or export."""


class ImageReadError(AssetError):
    """Raised when an image reference cannot be read."""


class ImageWriteError(AssetError):
    """Raised when an image cannot be written to program storage."""
