from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Bitbucket Webhooks"
    LOG_LEVEL: str = "INFO"

    # Webhook settings
    WEBHOOK_SECRET: SecretStr = SecretStr("")  # Empty disables signature checks
    PRESERVE_BODY: bool = False  # Keep raw body on request.state for later reads
    REQUIRE_HMAC: bool = False  # Reject deliveries without X-Hub-Signature

    model_config = {
        "env_file": ".env"
    }


@lru_cache
def get_settings():
    return Settings()


settings = get_settings()
