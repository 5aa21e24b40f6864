from __future__ import annotations

from .version import Version

# HIP header build number -> official ROCm release patch number.
# Append only: released bindings are keyed by these build numbers. Each entry
# pairs a shipped `hip_<build>` binding feature with the ROCm release whose
# `hip_version.h` reports that build number.
HIP_PATCH_RELEASES: dict[int, int] = {
    41134: 4,  # hip_41134 bindings, ROCm 6.2.4 (HIP 6.2.41134)
    42131: 0,  # hip_42131 bindings, ROCm 6.3.0 (HIP 6.3.42131)
}


def map_hip_patch(raw_patch: int) -> int | None:
    return HIP_PATCH_RELEASES.get(raw_patch)


def known_hip_patches() -> list[int]:
    return sorted(HIP_PATCH_RELEASES)


def rocm_version_from_hip(hip_version: Version) -> tuple[Version, str | None]:
    """Derive the ROCm release version from the HIP runtime version.

    The HIP major/minor follow the ROCm release line; only the patch needs the
    lookup. Unknown build numbers are kept as-is and reported through the
    returned warning.
    """
    release_patch = map_hip_patch(hip_version.patch)
    if release_patch is None:
        warning = f"unknown release version for patch {hip_version.patch}"
        return Version(hip_version.major, hip_version.minor, hip_version.patch), warning
    return Version(hip_version.major, hip_version.minor, release_patch), None
