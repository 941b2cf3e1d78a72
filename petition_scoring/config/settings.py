from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "petition_scoring"
    db_username: str = "petition_scoring"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    job_poll_interval_seconds: int = 5
    worker_concurrency: int = 4
    extraction_concurrency: int = 4
    step_max_retries: int = 2
    step_retry_delay_seconds: float = 1.0

    files_root: Path = Path("/app/files")

    pdf_engine: str = "pdfplumber"
    min_pdf_text_chars: int = 500
    ocr_max_bytes: int = 5 * 1024 * 1024
    words_per_page: int = 500
    skip_extraction_min_chars: int = 100
    max_corpus_chars: int = 150_000

    ocr_provider: str = "mistral"
    ocr_api_key: str = ""
    ocr_model_name: str = "pixtral-12b-2409"
    ocr_base_url: str | None = None
    ocr_timeout_seconds: int = 120

    scoring_provider: str = "openai"
    scoring_api_key: str = ""
    scoring_model_name: str = ""
    scoring_base_url: str | None = None
    scoring_timeout_seconds: int = 600
    scoring_temperature: float = 0.0
    scoring_max_output_tokens: int | None = None

    api_host: str = "0.0.0.0"
    api_port: int = 8000
