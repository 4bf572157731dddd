"""Provides a factory for ready-to-use token verifiers."""

import time
from threading import Lock
from typing import Callable, Optional

import requests

from . import app_logging, config
from .keys import KeyCache
from .verifier import TokenVerifier

_key_cache: Optional[KeyCache] = None
_key_cache_lock = Lock()


def get_key_cache() -> KeyCache:
    """Get the process-wide key cache, creating it on first use."""
    global _key_cache
    with _key_cache_lock:
        if _key_cache is None:
            _key_cache = KeyCache(config.PUBLIC_KEY_URL,
                                  timeout=config.get_http_timeout())
        return _key_cache


def create_verifier(project_id: Optional[str] = None,
                    session: Optional[requests.Session] = None,
                    key_cache: Optional[KeyCache] = None,
                    clock: Callable[[], float] = time.time) -> TokenVerifier:
    """
    Initialize a :class:`.TokenVerifier` from configuration.

    Anything not passed in is taken from :mod:`.config`; verifiers created
    without an explicit ``key_cache`` all share one.
    """
    if config.LOG_JSON:
        app_logging.setup_logger(config.get_log_level())
    if project_id is None:
        project_id = config.get_project_id()
    return TokenVerifier(
        project_id,
        key_cache or get_key_cache(),
        session=session or requests.Session(),
        clock=clock,
    )
