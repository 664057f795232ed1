from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the booth catalog ingestion pipeline.
    """

    raw_path: Path = Path("backend/data/raw/foodweek_selected.jsonl")
    processed_data_dir: Path = Path("backend/data/processed")
    processed_filename: str = "booths.jsonl"

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
