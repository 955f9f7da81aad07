"""
Environment-driven settings.

    GTDFLOW_DOCUMENT      path of the backing document (default ~/.gtd-flow/store.md)
    GTDFLOW_STORE_FORMAT  "markdown" or "json"
    GTDFLOW_LANG          "en" or "zh"
    GTDFLOW_TIMEZONE      default IANA zone for tasks without @tz(...)
    API_ENABLED           start the REST API next to the MCP server
    API_HOST / API_PORT   REST API bind address
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models.workflow import DEFAULT_LANG, SUPPORTED_LANGS
from .storage import STORAGE_FORMATS

log = logging.getLogger(__name__)

DEFAULT_DOCUMENT = Path.home() / ".gtd-flow" / "store.md"
DEFAULT_API_PORT = 3000


@dataclass
class Settings:
    document_path: Path = DEFAULT_DOCUMENT
    store_format: str = "markdown"
    lang: str = DEFAULT_LANG
    timezone: str = "UTC"
    api_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = DEFAULT_API_PORT


def _is_true(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


def _valid_zone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the environment; invalid values fall back to defaults."""
    env = os.environ if environ is None else environ
    settings = Settings()

    document = env.get("GTDFLOW_DOCUMENT", "").strip()
    if document:
        settings.document_path = Path(document).expanduser()

    store_format = env.get("GTDFLOW_STORE_FORMAT", "").strip().lower()
    if store_format:
        if store_format in STORAGE_FORMATS:
            settings.store_format = store_format
        else:
            log.warning("Unknown GTDFLOW_STORE_FORMAT %r, using %s", store_format, settings.store_format)

    lang = env.get("GTDFLOW_LANG", "").strip().lower()
    if lang:
        if lang in SUPPORTED_LANGS:
            settings.lang = lang
        else:
            log.warning("Unknown GTDFLOW_LANG %r, using %s", lang, DEFAULT_LANG)

    zone = env.get("GTDFLOW_TIMEZONE", "").strip()
    if zone:
        if _valid_zone(zone):
            settings.timezone = zone
        else:
            log.warning("Unknown GTDFLOW_TIMEZONE %r, using UTC", zone)

    settings.api_enabled = _is_true(env.get("API_ENABLED", "true"))
    settings.api_host = env.get("API_HOST", settings.api_host).strip() or settings.api_host

    port = env.get("API_PORT", "").strip()
    if port:
        try:
            settings.api_port = int(port)
        except ValueError:
            log.warning("Invalid API_PORT %r, using %d", port, DEFAULT_API_PORT)

    return settings
