from functools import lru_cache

from pydantic_settings import BaseSettings

from app.core.doppler import load_doppler_secrets

# Load Doppler secrets into environment BEFORE Settings is instantiated
load_doppler_secrets()


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_secret_key: str = ""

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""  # Empty = unsigned webhooks (development only)
    currency: str = "eur"

    # Server
    environment: str = "development"

    # Public profiles live at {web_app_url}/{username}
    web_app_url: str = "http://localhost:5173"

    # Allowed origins in production (web app and its subdomains)
    cors_origin_pattern: str = r"^https://([a-z0-9-]+\.)?obsi\.app$"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def get_public_profile_url(username: str) -> str:
    """Public URL of a profile page, as printed on cards and QR codes."""
    return f"{settings.web_app_url.rstrip('/')}/{username}"
