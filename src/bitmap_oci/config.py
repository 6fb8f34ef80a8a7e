from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyHttpUrl, Field


# Content paths of the index pages, in page order (bitmaps 0-99,999 first).
# The last page is partial: 800,000-839,999.
DEFAULT_INDEX_PAGE_SOURCES: List[str] = [
    "/content/01bba6c58af39d7f199aa2bceeaaba1ba91b23d2663bc4ef079a4b5e442dbf74i0",
    "/content/bb01dfa977a5cd0ee6e900f1d1f896b5ec4b1e3c7b18f09c952f25af6591809fi0",
    "/content/bb02e94f3062facf6aa2e47eeed348d017fd31c97614170dddb58fc59da304efi0",
    "/content/bb037ec98e6700e8415f95d1f5ca1fe1ba23a3f0c5cb7284d877e9ac418d0d32i0",
    "/content/bb9438f4345f223c6f4f92adf6db12a82c45d1724019ecd7b6af4fcc3f5786cei0",
    "/content/bb0542d4606a9e7eb4f31051e91f7696040db06ca1383dff98505618c34d7df7i0",
    "/content/bb06a4dffba42b6b513ddee452b40a67688562be4a1345127e4d57269e6b2ab6i0",
    "/content/bb076934c1c22007b315dd1dc0f8c4a2f9d52f348320cfbadc7c0bd99eaa5e18i0",
    "/content/bb986a1208380ec7db8df55a01c88c73a581069a51b5a2eb2734b41ba10b65c2i0",
]


class Settings(BaseSettings):
    ordinals_base_url: AnyHttpUrl = "https://ordinals.com"

    # Per-request timeout for every call to the data service (seconds)
    request_timeout: float = Field(default=15.0, gt=0)

    # Transport-level retries
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    index_page_sources: List[str] = Field(
        default_factory=lambda: list(DEFAULT_INDEX_PAGE_SOURCES)
    )

    # Upper bound on concurrent child fetches within one validation run
    child_concurrency: int = Field(default=32, ge=1)

    content_cache_size: int = Field(default=10_000, ge=0)

    max_sats_range: int = Field(default=10_000, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
