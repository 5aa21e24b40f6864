from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from .errors import FeatureCountError, FeatureDecodeError
from .version import U8_MAX, U32_MAX, Version

MODE_STRICT = "strict"
MODE_PERMISSIVE = "permissive"
MODES = (MODE_STRICT, MODE_PERMISSIVE)

FEATURE_ENV_PREFIX = "CARGO_FEATURE_"
FEATURE_SEPARATOR = "_"
_NUMERIC = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class FeatureCategory:
    name: str
    prefix: str
    limits: tuple[int, ...]

    @property
    def feature_prefix(self) -> str:
        return self.prefix[len(FEATURE_ENV_PREFIX):].lower()


@dataclass(frozen=True)
class FeatureSwitch:
    key: str
    token: str

    @property
    def feature_name(self) -> str:
        return self.key[len(FEATURE_ENV_PREFIX):].lower()


@dataclass(frozen=True)
class FeatureSelection:
    category: FeatureCategory
    values: tuple[int, ...]
    feature_name: str
    from_fallback: bool


ROCM_VERSION_CATEGORY = FeatureCategory(
    name="ROCm version",
    prefix="CARGO_FEATURE_ROCM_",
    limits=(U8_MAX, U8_MAX, U32_MAX),
)
HIP_PATCH_CATEGORY = FeatureCategory(
    name="HIP patch",
    prefix="CARGO_FEATURE_HIP_",
    limits=(U32_MAX,),
)


def parse_feature_switch(key: str, value: str, category: FeatureCategory) -> FeatureSwitch | None:
    # Cargo exports enabled features as CARGO_FEATURE_<NAME>=1.
    if value != "1" or not key.startswith(category.prefix):
        return None
    return FeatureSwitch(key=key, token=key[len(category.prefix):])


def enabled_features(environ: Mapping[str, str], category: FeatureCategory) -> list[FeatureSwitch]:
    switches: list[FeatureSwitch] = []
    for key, value in environ.items():
        switch = parse_feature_switch(key, value, category)
        if switch is not None:
            switches.append(switch)
    return sorted(switches, key=lambda item: item.key)


def decode_feature(switch: FeatureSwitch, category: FeatureCategory) -> tuple[int, ...]:
    parts = switch.token.split(FEATURE_SEPARATOR)
    if len(parts) != len(category.limits):
        raise FeatureDecodeError(
            f"Feature '{switch.feature_name}' must encode {len(category.limits)} numeric "
            f"component(s) separated by '{FEATURE_SEPARATOR}', got '{switch.token}'."
        )
    values: list[int] = []
    for part, limit in zip(parts, category.limits):
        if not _NUMERIC.fullmatch(part):
            raise FeatureDecodeError(
                f"Feature '{switch.feature_name}' has non-numeric component '{part}'."
            )
        value = int(part)
        if value > limit:
            raise FeatureDecodeError(
                f"Feature '{switch.feature_name}' component '{part}' exceeds the maximum of {limit}."
            )
        values.append(value)
    return tuple(values)


def encode_feature(category: FeatureCategory, values: tuple[int, ...]) -> str:
    return category.feature_prefix + FEATURE_SEPARATOR.join(str(value) for value in values)


def check_feature_count(environ: Mapping[str, str], category: FeatureCategory, mode: str) -> list[FeatureSwitch]:
    if mode not in MODES:
        raise FeatureCountError(f"Unknown feature mode '{mode}'. Expected one of: {', '.join(MODES)}.")
    switches = enabled_features(environ, category)
    if len(switches) > 1:
        names = ", ".join(f"'{switch.feature_name}'" for switch in switches)
        raise FeatureCountError(
            f"Only one {category.name} feature can be enabled at a time, found {len(switches)}: {names}."
        )
    if not switches and mode == MODE_STRICT:
        raise FeatureCountError(
            f"No {category.name} feature enabled. Exactly one `{category.feature_prefix}<version>` feature must be set."
        )
    return switches


def select_feature(
    environ: Mapping[str, str],
    category: FeatureCategory,
    mode: str,
    fallback: tuple[int, ...] | None = None,
) -> FeatureSelection:
    switches = check_feature_count(environ, category, mode)
    if switches:
        switch = switches[0]
        return FeatureSelection(
            category=category,
            values=decode_feature(switch, category),
            feature_name=switch.feature_name,
            from_fallback=False,
        )
    if fallback is None:
        raise FeatureCountError(
            f"No {category.name} feature enabled and no detected version is available to fall back to."
        )
    return FeatureSelection(
        category=category,
        values=tuple(fallback),
        feature_name=encode_feature(category, tuple(fallback)),
        from_fallback=True,
    )


def declared_rocm_version(
    environ: Mapping[str, str],
    mode: str,
    detected: Version | None = None,
) -> tuple[Version, FeatureSelection]:
    fallback = detected.as_tuple() if detected is not None else None
    selection = select_feature(environ, ROCM_VERSION_CATEGORY, mode, fallback)
    major, minor, patch = selection.values
    return Version(major=major, minor=minor, patch=patch), selection


def declared_hip_patch(
    environ: Mapping[str, str],
    mode: str,
    detected_patch: int | None = None,
) -> tuple[int, FeatureSelection]:
    fallback = (detected_patch,) if detected_patch is not None else None
    selection = select_feature(environ, HIP_PATCH_CATEGORY, mode, fallback)
    return selection.values[0], selection
