from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "magazine"
    db_username: str = "magazine"
    db_password: str = "secret"
    db_pool_max_size: int = Field(default=10, ge=1)

    upload_dir: str = "./public/uploads"
    public_url_prefix: str = "/uploads"
    max_upload_bytes: int = 50 * 1024 * 1024

    pdf_engine: str = "pymupdf"
    raster_dpi: int = Field(default=200, gt=0)
    raster_max_width: int = Field(default=1920, gt=0)
    raster_max_height: int = Field(default=2560, gt=0)
    page_batch_size: int = Field(default=5, ge=1)
    webp_quality: int = Field(default=78, ge=0, le=100)
