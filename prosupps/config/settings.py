from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Only used by scripts/seed_catalog.py and admin writes

    # Site
    site_name: str = "ProSupps - Premium Whey Protein"
    site_description: str = "Premium quality whey protein supplements for your fitness journey."
    site_url: Optional[str] = None
    contact_link: str = "https://t.me/prosupps_official"
    placeholder_image: str = "/whey_prot.jpg"

    # Storage buckets and upload caps (bytes)
    product_images_bucket: str = "product-images"
    avatars_bucket: str = "user-avatars"
    product_image_max_bytes: int = 50 * 1024 * 1024
    avatar_max_bytes: int = 5 * 1024 * 1024

    # Admin write coordination
    write_min_spacing_ms: int = 100
    write_retry_attempts: int = 3
    write_retry_base_delay: float = 1.0  # seconds, doubled after each failed attempt
    write_lock_timeout: float = 30.0
    refresh_delay_on_activate: float = 0.5

    # Form drafts and per-session state
    draft_ttl_hours: int = 24
    session_idle_timeout_minutes: int = 120

    # App
    app_name: str = "prosupps"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
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
