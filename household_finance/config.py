from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "HF_", "env_file": ".env", "env_file_encoding": "utf-8"}

    auth_username: str = Field(default="household")
    auth_password: str = Field(default="change-me")
    jwt_secret: str = Field(default="dev-secret-key-change-me-0123456789abcdef", min_length=32)
    jwt_expire_minutes: int = Field(default=1440)
    llm_provider: str = Field(default="anthropic", pattern=r"^(openai|anthropic)$")
    llm_model: str = Field(default="")
    llm_max_tokens: int = Field(default=1024, gt=0)
    insight_max_tokens: int = Field(default=300, gt=0)
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    max_tool_iterations: int = Field(default=10, ge=1)
    insight_window_days: int = Field(default=14, ge=1)
    currency: str = Field(default="AUD")
    timezone: str = Field(default="Australia/Sydney")
    log_level: str = Field(default="INFO")
    db_path: str = Field(default="household_finance.db")
    cors_origins: str = Field(default="http://localhost:3000")


settings = Settings()
