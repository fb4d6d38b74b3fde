from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from infostamp.constants import RASTER_FONT_FAMILY, RASTER_PADDING

CONFIG_ENV_VAR = "INFOSTAMP_CONFIG"

DEFAULT_CONFIG: dict[str, Any] = {
    "image": {
        "font_family": RASTER_FONT_FAMILY,
        "padding": RASTER_PADDING,
        "background": "#00000000",
        "text_color": "#000000",
        "output_format": "png",
        "quality": 92,
        "name_template": "{stem}__stamped.{ext}",
    },
    "pdf": {
        "preset": "signature",
        "debug_borders": False,
        "name_template": "{stem}__stamped.pdf",
    },
    "skip_existing": True,
}


def get_user_data_dir() -> Path:
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "infostamp"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "infostamp"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "infostamp"
    return Path.home() / ".config" / "infostamp"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return _deep_merge(DEFAULT_CONFIG, loaded)


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg_path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
