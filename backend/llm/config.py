from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    # Ranking twenty booths with rationales needs a long completion.
    timeout: float = 30.0
    max_tokens: int = 4096
    temperature: float = 0.3
    enabled: bool = os.getenv("LLM_ENABLED", "1") != "0"


DEFAULT_LLM_CONFIG = LLMConfig()
