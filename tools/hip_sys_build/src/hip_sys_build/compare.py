from __future__ import annotations

from dataclasses import dataclass

from .version import Version

COMPATIBLE = "compatible"
COMPATIBLE_WITH_WARNING = "compatible-with-warning"
INCOMPATIBLE = "incompatible"

DRIFT_MINOR = "Minor"
DRIFT_PATCH = "Patch"
DRIFT_BOTH = "Both minor and patch"


@dataclass(frozen=True)
class ReconciliationResult:
    status: str
    declared: Version
    detected: Version
    drift: str | None = None

    @property
    def is_compatible(self) -> bool:
        return self.status != INCOMPATIBLE


def compare_versions(declared: Version, detected: Version) -> ReconciliationResult:
    # The native ABI is only assumed stable within a major version line.
    if declared.major != detected.major:
        return ReconciliationResult(INCOMPATIBLE, declared, detected)
    # Patch numbers of different minor lines are unrelated, so a minor drift wins.
    if declared.minor != detected.minor:
        return ReconciliationResult(COMPATIBLE_WITH_WARNING, declared, detected, DRIFT_MINOR)
    if declared.patch != detected.patch:
        return ReconciliationResult(COMPATIBLE_WITH_WARNING, declared, detected, DRIFT_PATCH)
    return ReconciliationResult(COMPATIBLE, declared, detected)


def combine_drift(results: list[ReconciliationResult]) -> str | None:
    drifts = {result.drift for result in results if result.drift is not None}
    if DRIFT_BOTH in drifts or {DRIFT_MINOR, DRIFT_PATCH} <= drifts:
        return DRIFT_BOTH
    if drifts:
        return drifts.pop()
    return None


def drift_advisory(result: ReconciliationResult, component: str) -> str | None:
    if result.status != COMPATIBLE_WITH_WARNING:
        return None
    return (
        f"{result.drift} version is different between the {component} bindings ({result.declared}) "
        f"and the {component} installation found on the system ({result.detected}). "
        "The build should succeed but unexpected behavior may happen."
    )


def combined_advisory(results: dict[str, ReconciliationResult]) -> str | None:
    drift = combine_drift(list(results.values()))
    if drift is None:
        return None
    if drift != DRIFT_BOTH:
        advisories = (drift_advisory(result, component) for component, result in results.items())
        return " ".join(advisory for advisory in advisories if advisory)
    details = ", ".join(
        f"{component} bindings {result.declared} vs system {result.detected}"
        for component, result in results.items()
        if result.drift is not None
    )
    return (
        f"{DRIFT_BOTH} versions are different between the bindings and the installation found on the system "
        f"({details}). The build should succeed but unexpected behavior may happen."
    )


def incompatibility_message(result: ReconciliationResult, component: str) -> str:
    return (
        f"Incompatible {component} bindings. Expected {component} major version {result.declared.major} "
        f"({result.declared}) but found {result.detected} on the system."
    )
