from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    batch_size: int = Field(default=3, ge=1)
    assumed_document_cost_ms: int = Field(default=500, ge=0)

    pdf_engine: str = "pdfplumber"

    ocr_engine: str = "auto"
    ocr_language: str = "spa+eng"
    ocr_preview_chars: int = Field(default=240, ge=1)

    text_extensions: list[str] = ["txt", "log", "json", "csv", "xml", "html", "htm", "md"]
    max_text_bytes: int = Field(default=5 * 1024 * 1024, ge=1)

    top_extensions_limit: int = Field(default=5, ge=1)
    csv_delimiter: str = ","
