from __future__ import annotations

from pathlib import Path
from typing import Mapping

DEFAULT_PATH_ENV_VARS = ("CUBECL_ROCM_PATH", "ROCM_PATH", "HIP_PATH")
DEFAULT_ROCM_PATH = "/opt/rocm"
DEFAULT_MARKER = "include/hip"


def explicit_path_vars(env_vars: tuple[str, ...], environ: Mapping[str, str]) -> list[str]:
    return [name for name in env_vars if environ.get(name)]


def candidate_paths(env_vars: tuple[str, ...], default_path: str, environ: Mapping[str, str]) -> list[Path]:
    candidates: list[Path] = []
    seen: set[Path] = set()
    for raw in [environ.get(name) for name in env_vars] + [default_path]:
        if not raw:
            continue
        path = Path(raw)
        if path in seen:
            continue
        seen.add(path)
        candidates.append(path)
    return candidates


def has_marker(root: Path, marker: str) -> bool:
    return (root / marker).is_dir()


def resolve_candidates(
    env_vars: tuple[str, ...],
    default_path: str,
    marker: str,
    environ: Mapping[str, str],
) -> list[Path]:
    return [path for path in candidate_paths(env_vars, default_path, environ) if has_marker(path, marker)]
