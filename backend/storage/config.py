from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class StorageConfig:
    url: str = os.getenv("SUPABASE_URL", "")
    key: str = os.getenv("SUPABASE_SERVICE_KEY", "")
    evaluation_table: str = "evaluation"
    user_table: str = "user"
    search_function: str = "search_similar_booths"
    timeout: float = 10.0


DEFAULT_STORAGE_CONFIG = StorageConfig()
