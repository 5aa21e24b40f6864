from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from .emit import DEFAULT_LINK_LIBRARIES
from .errors import HipSysBuildError
from .features import MODE_STRICT, MODES
from .hipconfig import HIPCONFIG
from .paths import DEFAULT_MARKER, DEFAULT_PATH_ENV_VARS, DEFAULT_ROCM_PATH

STRATEGY_HEADER = "header"
STRATEGY_TOOL = "tool"
STRATEGIES = (STRATEGY_HEADER, STRATEGY_TOOL)

CATEGORY_ROCM = "rocm"
CATEGORY_HIP = "hip"
FEATURE_CATEGORIES = (CATEGORY_ROCM, CATEGORY_HIP)

DEFAULT_BUILD_SCRIPT = "build.rs"

_CONFIG_KEYS = {
    "env_vars",
    "default_path",
    "marker",
    "mode",
    "strategy",
    "feature_categories",
    "link_libraries",
    "tool",
    "build_script",
}


@dataclass(frozen=True)
class ProbeConfig:
    """Every input of a probe run, captured once at the entry point."""

    environ: Mapping[str, str] = field(default_factory=dict)
    env_vars: tuple[str, ...] = DEFAULT_PATH_ENV_VARS
    default_path: str = DEFAULT_ROCM_PATH
    marker: str = DEFAULT_MARKER
    mode: str = MODE_STRICT
    strategy: str = STRATEGY_HEADER
    feature_categories: tuple[str, ...] = FEATURE_CATEGORIES
    link_libraries: tuple[str, ...] = DEFAULT_LINK_LIBRARIES
    tool: str = HIPCONFIG
    build_script: str = DEFAULT_BUILD_SCRIPT

    def as_dict(self) -> dict[str, Any]:
        return {
            "env_vars": list(self.env_vars),
            "default_path": self.default_path,
            "marker": self.marker,
            "mode": self.mode,
            "strategy": self.strategy,
            "feature_categories": list(self.feature_categories),
            "link_libraries": list(self.link_libraries),
            "tool": self.tool,
            "build_script": self.build_script,
        }


def load_json(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise HipSysBuildError(f"Unable to read JSON file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise HipSysBuildError(f"Invalid JSON in '{path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise HipSysBuildError(f"JSON root in '{path}' must be an object.")
    return payload


def require_str(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value:
        raise HipSysBuildError(f"Config field '{key}' must be a non-empty string.")
    return value


def require_str_list(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise HipSysBuildError(f"Config field '{key}' must be a non-empty array of strings.")
    return tuple(require_str(item, f"{key}[{index}]") for index, item in enumerate(value))


def require_choice(value: Any, key: str, choices: tuple[str, ...]) -> str:
    text = require_str(value, key)
    if text not in choices:
        raise HipSysBuildError(f"Config field '{key}' must be one of: {', '.join(choices)} (got '{text}').")
    return text


def validate_config(config: ProbeConfig) -> ProbeConfig:
    require_choice(config.mode, "mode", MODES)
    require_choice(config.strategy, "strategy", STRATEGIES)
    for index, name in enumerate(config.feature_categories):
        require_choice(name, f"feature_categories[{index}]", FEATURE_CATEGORIES)
    if len(config.link_libraries) != 2:
        raise HipSysBuildError("Config field 'link_libraries' must name exactly two libraries.")
    return config


def config_from_payload(payload: dict[str, Any], base: ProbeConfig) -> ProbeConfig:
    unknown = sorted(set(payload) - _CONFIG_KEYS)
    if unknown:
        raise HipSysBuildError(f"Unknown config key(s): {', '.join(unknown)}.")
    changes: dict[str, Any] = {}
    for key in ("env_vars", "feature_categories", "link_libraries"):
        if key in payload:
            changes[key] = require_str_list(payload[key], key)
    for key in ("default_path", "marker", "mode", "strategy", "tool", "build_script"):
        if key in payload:
            changes[key] = require_str(payload[key], key)
    return replace(base, **changes)


def load_probe_config(
    environ: Mapping[str, str],
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ProbeConfig:
    config = ProbeConfig(environ=dict(environ))
    if config_path is not None:
        config = config_from_payload(load_json(config_path), config)
    if overrides:
        config = replace(config, **{key: value for key, value in overrides.items() if value is not None})
    return validate_config(config)
