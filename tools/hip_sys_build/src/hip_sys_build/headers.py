from __future__ import annotations

import re
from pathlib import Path

from .errors import HeaderParseError
from .version import U8_MAX, U32_MAX, Version

ROCM_VERSION_HEADER = "include/rocm-core/rocm_version.h"
ROCM_VERSION_MACRO_PREFIX = "ROCM_VERSION"
HIP_VERSION_HEADER = "include/hip/hip_version.h"
HIP_VERSION_MACRO_PREFIX = "HIP_VERSION"

_COMPONENT_LIMITS = (
    ("MAJOR", U8_MAX),
    ("MINOR", U8_MAX),
    ("PATCH", U32_MAX),
)
_UNSIGNED = re.compile(r"[0-9]+")


def find_define_value(lines: list[str], macro_name: str) -> str | None:
    prefix = f"#define {macro_name} "
    for raw_line in lines:
        line = raw_line.lstrip()
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def parse_unsigned(value: str, limit: int) -> int | None:
    if not _UNSIGNED.fullmatch(value):
        return None
    parsed = int(value)
    if parsed > limit:
        return None
    return parsed


def parse_version_header(content: str, macro_prefix: str, label: str) -> Version:
    lines = content.splitlines()
    components: list[int] = []
    for component, limit in _COMPONENT_LIMITS:
        macro_name = f"{macro_prefix}_{component}"
        raw = find_define_value(lines, macro_name)
        if raw is None:
            raise HeaderParseError(
                f"Invalid {label} file structure: {component.lower()} version line '#define {macro_name}' not found."
            )
        value = parse_unsigned(raw, limit)
        if value is None:
            raise HeaderParseError(
                f"Invalid {label} file structure: couldn't parse {component.lower()} version '{raw}' "
                f"as an unsigned integer <= {limit}."
            )
        components.append(value)
    return Version(major=components[0], minor=components[1], patch=components[2])


def read_version_header(root: Path, relative_path: str, macro_prefix: str) -> Version:
    header_path = root / relative_path
    try:
        content = header_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise HeaderParseError(f"Unable to read version header '{header_path}': {exc}") from exc
    return parse_version_header(content, macro_prefix, header_path.name)


def get_rocm_system_version(rocm_path: Path) -> Version:
    return read_version_header(Path(rocm_path), ROCM_VERSION_HEADER, ROCM_VERSION_MACRO_PREFIX)


def get_hip_system_version(rocm_path: Path) -> Version:
    return read_version_header(Path(rocm_path), HIP_VERSION_HEADER, HIP_VERSION_MACRO_PREFIX)
