"""Runtime settings read from the environment and an optional .env file."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from mentor.db import DEFAULT_DB_PATH


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    teacher_id: Optional[str] = None
    log_level: str = "WARNING"


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from MENTOR_* variables. Existing env vars win over .env."""
    load_dotenv(env_file)
    return Settings(
        db_path=os.getenv("MENTOR_DB_PATH") or DEFAULT_DB_PATH,
        teacher_id=os.getenv("MENTOR_TEACHER_ID") or None,
        log_level=(os.getenv("MENTOR_LOG_LEVEL") or "WARNING").upper(),
    )
