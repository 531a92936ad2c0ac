from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Literal


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Needed to read users/check-ins past RLS

    # Identity / stats
    profiles_table: str = "users"
    stats_missing_profile_policy: Literal["not_found", "zero"] = "not_found"
    stats_max_workers: int = 4
    default_level: int = 1
    auth_cache_ttl_sec: int = 60

    # App
    app_name: str = "direitai-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "https://direitai.com,http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
