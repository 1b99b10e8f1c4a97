import os


class Settings:
    PROJECT_NAME: str = "kanjiquiz"
    DEBUG: bool = os.environ.get("KANJIQUIZ_DEBUG", "") == "1"
    LOG_DIR: str = os.environ.get("KANJIQUIZ_LOG_DIR", "log")
    LOG_FILE: str = "kanjiquiz.log"
    DB_DIR: str = os.environ.get("KANJIQUIZ_DB_DIR", "db")
    DB_FILE: str = "kanjiquiz.db"
    VOCAB_DIR: str = os.environ.get("KANJIQUIZ_VOCAB_DIR", "vocabulary")
    # Scoring and question shape
    POINTS_PER_CORRECT: int = int(os.environ.get("KANJIQUIZ_POINTS_PER_CORRECT", "10"))
    MAX_OPTIONS: int = int(os.environ.get("KANJIQUIZ_MAX_OPTIONS", "4"))
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
