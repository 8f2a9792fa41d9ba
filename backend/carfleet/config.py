import os
from pathlib import Path


def _split_env(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    """Application settings with environment variable overrides."""

    APP_NAME: str = "Dealership Fleet Admin"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
    UPLOADS_DIR: Path = Path(os.getenv("UPLOADS_DIR", str(DATA_DIR / "uploads")))
    DB_PATH: Path = DATA_DIR / "fleet_admin.db"

    # Local bookkeeping database (ID counters, write log)
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{DB_PATH}",
    )
    DB_BUSY_TIMEOUT_SECONDS: float = float(os.getenv("DB_BUSY_TIMEOUT_SECONDS", "30"))

    # Record store: "workbook" (local .xlsx) or "google" (Sheets API)
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "workbook").lower()
    WORKBOOK_PATH: Path = Path(
        os.getenv("WORKBOOK_PATH", str(DATA_DIR / "fleet.xlsx"))
    )
    WORKBOOK_BACKUPS: bool = os.getenv("WORKBOOK_BACKUPS", "true").lower() == "true"
    WORKBOOK_BACKUP_KEEP: int = int(os.getenv("WORKBOOK_BACKUP_KEEP", "20"))
    SPREADSHEET_ID: str = os.getenv("SPREADSHEET_ID", "")
    GOOGLE_KEY_FILE: Path = Path(
        os.getenv("GOOGLE_KEY_FILE", str(BASE_DIR / "keys.json"))
    )
    STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "20"))
    STORE_MAX_RETRIES: int = int(os.getenv("STORE_MAX_RETRIES", "3"))
    ID_ALLOCATION_RETRIES: int = int(os.getenv("ID_ALLOCATION_RETRIES", "3"))

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 1000
    RECENT_ENTRIES: int = 5

    # File storage: "local" or "drive"
    FILE_STORAGE: str = os.getenv("FILE_STORAGE", "local").lower()
    DOCUMENTS_FOLDER_NAME: str = os.getenv("DOCUMENTS_FOLDER_NAME", "CarDealership_Documents")
    PHOTOS_FOLDER_NAME: str = os.getenv("PHOTOS_FOLDER_NAME", "CarDealership_Photos")
    UPLOADS_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5MB

    # Auth: comma-separated "username:password" pairs, hashed at startup
    AUTH_USERS: list[str] = _split_env("AUTH_USERS", "admin:admin")
    TOKEN_MAX_AGE: int = 86400  # 24 hours

    # CORS
    ALLOWED_ORIGINS: list[str] = _split_env(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
    )

    # Business constants
    PARTNER_NAMES: list[str] = _split_env("PARTNER_NAMES", "Partner A,Partner B,Partner C")
    SPLIT_TOLERANCE: float = 1e-6


settings = Settings()
