"""Process configuration, read once from the environment at startup."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi.templating import Jinja2Templates

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_PORT = 8484
DEFAULT_HOST = "0.0.0.0"


@dataclass(frozen=True)
class Settings:
    """Immutable service configuration shared by all request handlers."""

    port: int
    host: str
    production: bool
    google_maps_key: str
    template_dir: Path
    static_dir: Path
    templates: Jinja2Templates


def _read_port(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from exc


def load_settings(root: Optional[Path] = None) -> Settings:
    """Build :class:`Settings` from ``PORT``, ``PROD``, ``RISESET_HOST`` and
    ``GOOGLE_MAPS_API_KEY``.

    Templates and static assets live in ``templates/`` and ``static/`` under
    *root* (the project directory by default).
    """

    base = Path(root) if root is not None else PROJECT_ROOT
    template_dir = base / "templates"
    static_dir = base / "static"

    key = os.environ.get("GOOGLE_MAPS_API_KEY", "")
    if not key:
        LOGGER.warning(json.dumps({"event": "maps_key_missing"}))

    return Settings(
        port=_read_port(os.environ.get("PORT")),
        host=os.environ.get("RISESET_HOST", DEFAULT_HOST),
        production=os.environ.get("PROD") == "True",
        google_maps_key=key,
        template_dir=template_dir,
        static_dir=static_dir,
        templates=Jinja2Templates(directory=str(template_dir)),
    )
