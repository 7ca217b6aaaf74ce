from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "itera"
    db_username: str = "itera"
    db_password: str = "secret"

    itera_username: str = ""
    itera_password: str = ""
    itera_auth_url: str = ""
    itera_upload_url: str = ""
    # Templates take the remote document id (status, mapping) or the CNPJ (export)
    itera_status_url: str = ""
    itera_export_url: str = ""
    itera_mapping_url: str = ""
    itera_request_timeout_seconds: int = 30
    itera_token_cache_seconds: int = 3300

    batch_wait_for_completion: bool = True
    batch_timeout_seconds: int = 300
    batch_polling_interval_seconds: int = 10

    worker_poll_interval_seconds: int = 30
