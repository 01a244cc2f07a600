from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PLANTDESK_",
        extra="ignore",
    )

    # Spreadsheet API
    api_base_url: str = "http://127.0.0.1:8001/exec"
    request_timeout_s: float = 30.0

    # Cache TTL tiers (milliseconds)
    cache_ttl_short_ms: int = 30_000
    cache_ttl_default_ms: int = 60_000
    cache_ttl_long_ms: int = 300_000

    # Plants. The default plant reads/writes the base collection,
    # every other plant uses "{collection}_{plant}".
    default_plant: str = "NPK2"
    plants: list[str] = Field(default_factory=lambda: ["NPK2", "NPK1"])

    # Dedicated collections
    approval_collection: str = "approval_requests"
    activity_log_collection: str = "activity_logs"

    # Access level for roles missing from the role policy table
    unknown_role_access: str = "no-access"

    log_level: str = "INFO"


settings = Settings()
