
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Vendor Evaluation Data Bank"
    app_env: str = "development"
    frontend_url: str = "http://localhost:3000"
    max_upload_size_mb: int = 10

    # Durability medium: "local" (key-value file) | "remote" (upload endpoint)
    storage_backend: Literal["local", "remote"] = Field(
        default="local", alias="STORAGE_BACKEND",
    )
    storage_key: str = Field(default="vendorSqliteDatabase", alias="STORAGE_KEY")

    # Local-store strategy
    local_store_path: str = Field(
        default="./data/local_store.json", alias="LOCAL_STORE_PATH",
    )

    # Remote-file strategy (client side)
    remote_base_url: str = Field(default="http://localhost:8000", alias="REMOTE_BASE_URL")
    remote_upload_path: str = Field(default="/api/save-database", alias="REMOTE_UPLOAD_PATH")
    # Unset: fetch /<SNAPSHOT_FILENAME>, the path this app serves
    remote_snapshot_path: str | None = Field(default=None, alias="REMOTE_SNAPSHOT_PATH")
    remote_timeout: int = Field(default=30, alias="REMOTE_TIMEOUT")

    # Remote-file strategy (server side)
    public_dir: str = Field(default="./public", alias="PUBLIC_DIR")
    snapshot_filename: str = Field(default="vendors.db", alias="SNAPSHOT_FILENAME")

    # Start from an empty table (true) or refuse to start (false) on a corrupt snapshot
    discard_corrupt_snapshot: bool = Field(default=True, alias="DISCARD_CORRUPT_SNAPSHOT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def snapshot_url_path(self) -> str:
        return "/" + self.snapshot_filename.lstrip("/")

settings = Settings()
