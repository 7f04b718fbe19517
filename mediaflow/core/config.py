from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MEDIAFLOW_", env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    api_key: str = ""
    api_base_url: str = "https://api.piapi.ai"
    upload_url: str = "https://upload.theapi.app/api/ephemeral_resource"
    http_timeout_s: float = 60.0

    # poll budget used when neither the caller nor the adapter sets one
    max_retries: int = 20
    retry_interval_ms: int = 3000

    continue_on_fail: bool = False

settings = Settings()
