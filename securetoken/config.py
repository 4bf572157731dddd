"""Configuration for ID token verification, read from the environment."""

import json
import logging
import math
import os
from typing import Mapping, Optional

import google.auth
from google.auth.exceptions import DefaultCredentialsError

from .exceptions import ConfigurationError
from .keys import PUBLIC_KEY_URL as DEFAULT_PUBLIC_KEY_URL

PUBLIC_KEY_URL = os.environ.get("SECURETOKEN_PUBLIC_KEY_URL",
                                DEFAULT_PUBLIC_KEY_URL)
"""Key-distribution endpoint; override for emulators and tests."""

DEFAULT_HTTP_TIMEOUT = 10.0
"""Seconds to wait on the key-distribution endpoint."""

LOG_JSON = os.environ.get("LOG_JSON", "0") in {"1", "true", "yes", "on"}
"""Whether to log JSON lines to stderr, see :mod:`.app_logging`."""


def get_http_timeout(environ: Mapping[str, str] = os.environ) -> float:
    """``SECURETOKEN_HTTP_TIMEOUT`` in seconds; must be a positive number."""
    value = environ.get("SECURETOKEN_HTTP_TIMEOUT")
    if value is None:
        return DEFAULT_HTTP_TIMEOUT
    try:
        timeout = float(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"SECURETOKEN_HTTP_TIMEOUT is not a number: {value!r}"
        ) from exc
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigurationError(
            f"SECURETOKEN_HTTP_TIMEOUT must be positive: {value!r}"
        )
    return timeout


def get_log_level(environ: Mapping[str, str] = os.environ) -> int:
    """``LOG_LEVEL`` as a :mod:`logging` level, e.g. ``DEBUG``."""
    value = environ.get("LOG_LEVEL", "INFO")
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"LOG_LEVEL is not a logging level: {value!r}")
    return level


def _load_firebase_config(value: str) -> dict:
    """``FIREBASE_CONFIG`` is either inline JSON or a path to a JSON file."""
    if value.startswith("{"):
        raw = value
    else:
        try:
            with open(value, encoding="utf-8") as f:
                raw = f.read()
        except OSError as exc:
            raise ConfigurationError(
                f"could not read FIREBASE_CONFIG file {value}: {exc}"
            ) from exc
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(f"FIREBASE_CONFIG is not valid JSON: {exc}") \
            from exc
    if not isinstance(data, dict):
        raise ConfigurationError("FIREBASE_CONFIG is not a JSON object")
    return data


def _credentials_project_id(path: str) -> Optional[str]:
    """The project of the credentials file at ``path``, if it names one."""
    try:
        _, project_id = google.auth.load_credentials_from_file(path)
    except DefaultCredentialsError as exc:
        raise ConfigurationError(
            f"could not load GOOGLE_APPLICATION_CREDENTIALS {path}: {exc}"
        ) from exc
    return project_id


def get_project_id(environ: Mapping[str, str] = os.environ) -> str:
    """
    Find the project whose ID tokens should be accepted.

    Looks at, in order, the ``projectId`` in ``FIREBASE_CONFIG``, the project
    of the credentials file named by ``GOOGLE_APPLICATION_CREDENTIALS``,
    ``GOOGLE_CLOUD_PROJECT`` and ``GCLOUD_PROJECT``. Returns an empty string
    if none is set.
    """
    firebase_config = environ.get("FIREBASE_CONFIG")
    if firebase_config:
        project_id = _load_firebase_config(firebase_config).get("projectId")
        if project_id:
            return str(project_id)
    credentials = environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if credentials:
        project_id = _credentials_project_id(credentials)
        if project_id:
            return project_id
    return environ.get("GOOGLE_CLOUD_PROJECT") \
        or environ.get("GCLOUD_PROJECT") \
        or ""
