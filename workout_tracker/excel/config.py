"""Workbook layout constants for program interchange.

Program workbooks have one "Informations" sheet (a header row plus one value
row) and one sheet per selected weekday named by its French label.

Day sheets have been written in TWO layouts over time:
- REPEATED layout (current): one row per exercise, block columns repeated on
  every row (merged vertically for display), header starts with
  "Bloc | Exercice | ...".
- TYPED layout (older exports and templates): a "Type" column tags each row as
  BLOC, EXERCICE or DESCRIPTION_JOUR, header "Type | Nom | Description | ...".

Only the repeated layout is written. Both are read.
"""

import unicodedata
from dataclasses import dataclass
from typing import Final

from workout_tracker.utils.date_helpers import get_weekday_label


@dataclass(frozen=True)
class ColumnSpec:
    """One output column: record field, header text, display width."""

    field: str
    header: str
    width: int


# --- Informations sheet ---
INFO_SHEET: Final[str] = "Informations"
INSTRUCTIONS_SHEET: Final[str] = "Instructions"

INFO_NAME: Final[str] = "Nom Programme"
INFO_DESCRIPTION: Final[str] = "Description Programme"
INFO_SELECTED_DAYS: Final[str] = "Jours Sélectionnés"
INFO_CREATED_AT: Final[str] = "Date Création"
INFO_MAX_DC: Final[str] = "Max DC (kg)"
INFO_MAX_SDT: Final[str] = "Max SDT (kg)"
INFO_MAX_SQUAT: Final[str] = "Max Squat (kg)"
INFO_EXPORT_TYPE: Final[str] = "Export Type"

INFO_HEADERS: Final[tuple[str, ...]] = (
    INFO_NAME,
    INFO_DESCRIPTION,
    INFO_SELECTED_DAYS,
    INFO_CREATED_AT,
    INFO_MAX_DC,
    INFO_MAX_SDT,
    INFO_MAX_SQUAT,
    INFO_EXPORT_TYPE,
)

EXPORT_TYPE_STANDARD: Final[str] = "STANDARD"
EXPORT_TYPE_WITH_IMAGES: Final[str] = "WITH_IMAGES"

# --- Day sheets ---
DAY_DESCRIPTION_MARKER: Final[str] = "DESCRIPTION JOUR:"
DAY_DESCRIPTION_PREFIX: Final[str] = DAY_DESCRIPTION_MARKER + " "

IMAGE_SEPARATOR: Final[str] = ";"

PROGRAM_COLUMNS: Final[tuple[ColumnSpec, ...]] = (
    ColumnSpec("block_name", "Bloc", 20),
    ColumnSpec("exercise_name", "Exercice", 25),
    ColumnSpec("block_description", "Description Bloc", 30),
    ColumnSpec("exercise_description", "Description Exercice", 35),
    ColumnSpec("series", "Series", 8),
    ColumnSpec("repetitions", "Repetitions", 12),
    ColumnSpec("charge_type", "Type Charge", 12),
    ColumnSpec("charge", "Charge/Pourcentage", 15),
    ColumnSpec("ct_type", "Type CT", 8),
    ColumnSpec("advice", "Conseils", 30),
    ColumnSpec("rest", "Repos (sec)", 10),
    ColumnSpec("images", "Images", 40),
)

# Columns merged across all rows of a block (display only)
MERGED_BLOCK_FIELDS: Final[frozenset[str]] = frozenset(
    {"block_name", "block_description", "series"}
)

# Typed layout row tags
ROW_TAG_BLOCK: Final[str] = "BLOC"
ROW_TAG_EXERCISE: Final[str] = "EXERCICE"
ROW_TAG_DAY_DESCRIPTION: Final[str] = "DESCRIPTION_JOUR"

# Typed layout header, kept for reading old files (and building them in tests)
TYPED_HEADERS: Final[tuple[str, ...]] = (
    "Type", "Nom", "Description", "Séries", "Répétitions", "Type Charge",
    "Charge/Pourcentage", "Type CT", "Conseils", "Repos (sec)",
)

# A header row must contain every keyword of one layout (normalized text)
REPEATED_LAYOUT_KEYWORDS: Final[tuple[str, ...]] = (
    "bloc", "exercice", "series", "repetitions",
)
TYPED_LAYOUT_KEYWORDS: Final[tuple[str, ...]] = (
    "type", "nom", "series", "repetitions",
)

# Normalized header text -> record field. Anything else is ignored.
HEADER_SYNONYMS: Final[dict[str, str]] = {
    "bloc": "block_name",
    "nom bloc": "block_name",
    "exercice": "exercise_name",
    "nom exercice": "exercise_name",
    "description bloc": "block_description",
    "description exercice": "exercise_description",
    "series": "series",
    "repetitions": "repetitions",
    "type charge": "charge_type",
    "charge/pourcentage": "charge",
    "charge": "charge",
    "type ct": "ct_type",
    "conseils": "advice",
    "repos (sec)": "rest",
    "repos": "rest",
    "images": "images",
    # typed layout only
    "type": "row_type",
    "nom": "name",
    "description": "description",
}

# --- Row-level defaults ---
DEFAULT_REPETITIONS: Final[int] = 10
DEFAULT_REST_SECONDS: Final[int] = 60
DEFAULT_SERIES: Final[int] = 1
DEFAULT_BLOCK_NAME: Final[str] = "Bloc sans nom"
DEFAULT_EXERCISE_NAME: Final[str] = "Exercice sans nom"

# --- Files ---
SPREADSHEET_EXTENSION: Final[str] = ".xlsx"
ARCHIVE_EXTENSION: Final[str] = ".zip"
ARCHIVE_IMAGES_PREFIX: Final[str] = "images/"
XLSX_MEDIA_TYPE: Final[str] = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)
ZIP_MEDIA_TYPE: Final[str] = "application/zip"
TEMPLATE_FILE_PREFIX: Final[str] = "format_programme_sportif"

# --- Weekly results workbooks ---
RESULTS_INFO_PROGRAM: Final[str] = "Programme"
RESULTS_INFO_WEEK: Final[str] = "Semaine"
RESULTS_INFO_DATE: Final[str] = "Date Export"
RESULTS_INFO_SESSIONS: Final[str] = "Nombre de Sessions"
HISTORY_INFO_DATE: Final[str] = "Date"

RESULTS_COLUMNS: Final[tuple[ColumnSpec, ...]] = (
    ColumnSpec("block_name", "Bloc", 20),
    ColumnSpec("exercise_name", "Exercice", 25),
    ColumnSpec("block_description", "Description Bloc", 30),
    ColumnSpec("exercise_description", "Description Exercice", 35),
    ColumnSpec("series", "Series", 10),
    ColumnSpec("repetitions", "Repetitions", 12),
    ColumnSpec("charge", "Charge", 20),
    ColumnSpec("note", "Commentaire", 30),
    ColumnSpec("done", "Termine", 10),
)
RESULTS_MERGED_FIELDS: Final[frozenset[str]] = frozenset(
    {"block_name", "block_description"}
)
RESULT_DONE: Final[str] = "OUI"
RESULT_NOT_DONE: Final[str] = "NON"

TEMPLATE_INSTRUCTIONS: Final[tuple[str, ...]] = (
    "GUIDE D'UTILISATION",
    "",
    '1. Remplissez la feuille "Informations" avec les détails du programme',
    '2. Pour "Jours Sélectionnés", utilisez les numéros: 0=Lundi, 1=Mardi, '
    "2=Mercredi, 3=Jeudi, 4=Vendredi, 5=Samedi, 6=Dimanche",
    "3. Créez une feuille pour chaque jour sélectionné (nommée par le jour)",
    "4. Dans chaque feuille jour, une ligne par exercice:",
    "   - Bloc / Description Bloc / Series: le bloc auquel appartient l'exercice "
    "(une nouvelle valeur de Bloc commence un nouveau bloc)",
    "   - Exercice / Description Exercice: l'exercice",
    "   - Repetitions: nombre de répétitions (10 par défaut)",
    '5. Type Charge: "normal" ou "CT"',
    '6. Si Type Charge = "CT", remplir "Type CT" avec: DC, SDT, ou Squat',
    '7. Charge/Pourcentage: pour "normal" = poids (ex: 20kg), '
    'pour "CT" = pourcentage (ex: 70)',
    "8. Repos (sec): temps de repos en secondes (60 par défaut)",
    "9. Images: chemins ou URLs séparés par des points-virgules (optionnel)",
    "10. Les charges max (DC, SDT, Squat) sont incluses pour information "
    "mais ne seront pas importées",
    f'11. Description du jour: optionnelle, une ligne "{DAY_DESCRIPTION_PREFIX}..." '
    "au-dessus des en-têtes",
)


def get_day_sheet_name(day_index: int) -> str:
    """Get the sheet name for a weekday index (0 = Monday)."""
    return get_weekday_label(day_index)


def normalize_header(value: object) -> str:
    """Lowercase, strip accents and collapse whitespace.

    E.g. '  Répétitions ' -> 'repetitions', 'Repos  (sec)' -> 'repos (sec)'.
    """
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return " ".join(text.lower().split())
