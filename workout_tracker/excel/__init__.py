"""Program interchange engine.

Provides reading and writing of program workbooks, program archives with
images, and weekly results workbooks.
"""

from workout_tracker.excel.archive import ProgramArchive, image_extension
from workout_tracker.excel.errors import ImportErrorCode, InterchangeError
from workout_tracker.excel.reader import ProgramReader
from workout_tracker.excel.results import ResultsWriter
from workout_tracker.excel.writer import ProgramWriter

__all__ = [
    "ImportErrorCode",
    "InterchangeError",
    "ProgramArchive",
    "ProgramReader",
    "ProgramWriter",
    "ResultsWriter",
    "image_extension",
]
