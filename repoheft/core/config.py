"""Configuration management for repoheft"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv

from ..utils.file_filter import DEFAULT_EXCLUDE_PATTERNS

load_dotenv()

MAX_WORKER_CAP = 8


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Account sweep
    account_url: Optional[str] = Field(None, alias="ACCOUNT_URL")
    github_token: Optional[str] = Field(None, alias="GITHUB_TOKEN")
    github_api_url: str = Field("https://api.github.com", alias="GITHUB_API_URL")
    hosting_domain: str = Field("github.com", alias="HOSTING_DOMAIN")
    api_per_page: int = Field(100, alias="API_PER_PAGE")
    http_timeout: float = Field(30.0, alias="HTTP_TIMEOUT")

    # Cloning
    clone_dir: Path = Field(Path("cloned-repo"), alias="CLONE_DIR")
    git_timeout: int = Field(300, alias="GIT_TIMEOUT")  # seconds per git call
    max_workers: int = Field(1, alias="MAX_WORKERS")

    # Reporting
    single_top: int = Field(10, alias="SINGLE_TOP")
    account_top: int = Field(25, alias="ACCOUNT_TOP")
    exclude_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        alias="EXCLUDE_PATTERNS",
    )

    # General settings
    verbose: bool = Field(False, alias="VERBOSE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    def validate_settings(self) -> bool:
        """Validate configuration"""
        if self.single_top < 1 or self.account_top < 1:
            raise ValueError("SINGLE_TOP and ACCOUNT_TOP must be at least 1")
        if not 1 <= self.max_workers <= MAX_WORKER_CAP:
            raise ValueError(f"MAX_WORKERS must be between 1 and {MAX_WORKER_CAP}")
        if self.api_per_page < 1 or self.api_per_page > 100:
            raise ValueError("API_PER_PAGE must be between 1 and 100")
        if self.clone_dir.resolve() in (Path.cwd().resolve(), *Path.cwd().resolve().parents):
            raise ValueError(f"CLONE_DIR must not be the working directory or one of its parents: {self.clone_dir}")
        return True


# Create a single global instance
settings = Settings()
