from functools import lru_cache

from bitbucket_webhooks.core.config import get_settings
from bitbucket_webhooks.services.dispatcher import EventDispatcher


@lru_cache
def get_dispatcher() -> EventDispatcher:
    return EventDispatcher.from_settings(get_settings())
