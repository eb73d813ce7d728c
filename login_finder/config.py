# login_finder/config.py
"""
Centralized configuration management.

Handles loading defaults, merging in settings from pyproject.toml,
and applying runtime overrides.
"""
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, MutableMapping

try:
    import tomli
except ImportError:
    tomli = None  # type: ignore

log = logging.getLogger(__name__)

# Static assets and downloads; never worth classifying.
DEFAULT_EXTENSION_FILTER = [
    ".jpg", ".png", ".gif", ".jpeg", ".ico", ".svg",
    ".css", ".js", ".woff", ".woff2", ".eot", ".ttf", ".otf",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz", ".bz2",
    ".exe", ".dll", ".msi", ".iso", ".img", ".bin", ".dat",
]

# This is the baseline configuration dictionary.
DEFAULT_CONFIG: dict[str, Any] = {
    "mode": "static",  # "static": score response bodies; "dynamic": probe rendered pages
    "host_cap": 500,
    "task_timeout": 30.0,
    "settle_delay": 2.0,
    "load_timeout": 30.0,
    "max_concurrent_detections": 32,
    "event_queue_size": 1000,
    "score_threshold": 6,
    "results_dir": "results",
    "headless": True,
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
    ),
    "crawl": {
        "max_depth": 3,
        "concurrency": 10,
        "timeout": 30.0,
        "scope": "rdn",  # "rdn": same registrable domain; "fqdn": same host
        "ignore_query_params": True,
        "max_pages": 0,  # 0 = unlimited
        "extension_filter": DEFAULT_EXTENSION_FILTER,
        "out_of_scope": ["static", "assets", "img"],
    },
    # Extra strings appended to the built-in indicator lists, by list name.
    "indicators": {},
}


def _deep_merge_dict(
    base: MutableMapping[str, Any], overrides: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Recursively merge dicts."""
    for key, value in overrides.items():
        if isinstance(value, MutableMapping) and isinstance(
            base.get(key), MutableMapping
        ):
            base[key] = _deep_merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def load_config(
    pyproject_path: Path | None = None,
    overrides: MutableMapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Loads configuration from defaults, pyproject.toml and explicit overrides.

    1. Starts with a deep copy of DEFAULT_CONFIG.
    2. If `tomli` is installed and `pyproject.toml` is found, merges
       `[tool.login_finder]` over the defaults.
    3. Merges `overrides` (None values are ignored) last.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if tomli is None:
        log.debug("tomli not installed. Skipping pyproject.toml configuration.")
    else:
        if pyproject_path is None:
            pyproject_path = Path.cwd() / "pyproject.toml"

        if not pyproject_path.exists():
            log.debug(
                "No pyproject.toml found at %s. Using default config.", pyproject_path
            )
        else:
            try:
                with pyproject_path.open("rb") as f:
                    toml_data = tomli.load(f)

                project_config = toml_data.get("tool", {}).get("login_finder", {})
                if project_config:
                    log.info("Loading config from %s", pyproject_path)
                    config = _deep_merge_dict(config, project_config)  # type: ignore
                else:
                    log.debug("No [tool.login_finder] section in %s.", pyproject_path)

            except (OSError, tomli.TOMLDecodeError) as e:
                log.warning(
                    "Failed to load or parse %s: %s. Using default config.",
                    pyproject_path,
                    e,
                )

    if overrides:
        cleaned = {k: v for k, v in overrides.items() if v is not None}
        if cleaned:
            log.info("Applied overrides: %s", cleaned)
            config = _deep_merge_dict(config, cleaned)  # type: ignore

    if config["mode"] not in ("static", "dynamic"):
        raise ValueError(f"Unknown mode {config['mode']!r}; expected 'static' or 'dynamic'")
    return config
