from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    google_places_api_key: str
    anthropic_api_key: str = ""
    render_backend_url: str = ""
    log_level: str = "INFO"

    ai_models: list[str] = [
        "claude-3-5-haiku-latest",
        "claude-sonnet-4-20250514",
        "claude-3-7-sonnet-latest",
    ]
    ai_timeout: float = 30.0
    fetch_timeout: float = 15.0
    restaurant_timeout: float = 120.0

    classify_batch_size: int = 30
    classify_parallelism: int = 3
    classify_group_pause: float = 1.5
    classify_retries: int = 2

    diagnostics_capacity: int = 200
