"""
Doppler secrets loader for production deployment.

Fetches secrets from the Doppler API into environment variables.
Runs before Settings is instantiated when DOPPLER_TOKEN is set.
"""

import logging
import os

import requests

logger = logging.getLogger(__name__)

DOPPLER_API_URL = "https://api.doppler.com/v3/configs/config/secrets/download"

ENV_VARS = [
    "ENVIRONMENT",
    "WEB_APP_URL",
    "SUPABASE_URL",
    "SUPABASE_SECRET_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "CURRENCY",
]


def load_doppler_secrets() -> bool:
    """
    Load secrets from Doppler into the process environment.

    Existing environment variables win over Doppler values.

    Returns:
        True if secrets were loaded, False if DOPPLER_TOKEN not set
        or the download failed.
    """
    token = os.getenv("DOPPLER_TOKEN")
    if not token:
        return False

    try:
        response = requests.get(
            DOPPLER_API_URL,
            params={"format": "json"},
            auth=(token, ""),  # Service token as username, empty password
            timeout=30,
        )
        response.raise_for_status()
        secrets = response.json()
    except requests.RequestException as e:
        logger.warning(f"Failed to load Doppler secrets: {e}")
        return False

    loaded = 0
    for key in ENV_VARS:
        if key in secrets and key not in os.environ:
            os.environ[key] = secrets[key]
            loaded += 1

    logger.info(f"Loaded {loaded} secrets from Doppler")
    return True


if __name__ == "__main__":
    load_doppler_secrets()
