"""Settings for the devour cli."""

from functools import partial
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from devour.utils.filesys import retrieve_document
from devour.verification.subfiles import Retriever


class DevourSettings(BaseSettings):
    """Settings read from DEVOUR_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="DEVOUR_")

    LOG_LEVEL: str = "INFO"
    CACHE_DIR: Path = Path("cache")
    USE_CACHE: bool = False
    FETCH_TIMEOUT: float = Field(default=60, gt=0)
    SUBFILE_WORKERS: int = Field(default=1, ge=1)
    UPLOAD_PIPELINE: str | None = None

    def retriever(self) -> Retriever:
        """Return a document retriever bound to these settings."""
        return partial(
            retrieve_document,
            cache_dir=self.CACHE_DIR,
            use_cache=self.USE_CACHE,
            timeout=self.FETCH_TIMEOUT,
        )
