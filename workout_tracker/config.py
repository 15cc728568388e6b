import os
from pathlib import Path


class Settings:
    """Application settings with environment variable overrides."""

    APP_NAME: str = "Workout Program Tracker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = Path(os.getenv("WORKOUT_DATA_DIR", str(BASE_DIR / "data")))
    DB_PATH: Path = DATA_DIR / "workout_tracker.db"

    # Exercise images extracted from archives live under program_<id>/
    IMAGES_DIR: Path = Path(
        os.getenv("WORKOUT_IMAGES_DIR", str(DATA_DIR / "program_images"))
    )
    IMAGE_FETCH_TIMEOUT: float = float(os.getenv("IMAGE_FETCH_TIMEOUT", "15"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{DB_PATH}",
    )

    # CORS (Expo dev server + web preview)
    ALLOWED_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv(
            "ALLOWED_ORIGINS", "http://localhost:8081,http://localhost:19006"
        ).split(",")
        if o.strip()
    ]


settings = Settings()
