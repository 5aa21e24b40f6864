from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .compare import ReconciliationResult, combined_advisory, compare_versions, incompatibility_message
from .config import CATEGORY_HIP, CATEGORY_ROCM, STRATEGY_TOOL, ProbeConfig
from .emit import BuildDirectives, emit_link_directives, find_library_directory
from .errors import (
    AmbiguousCandidatesError,
    HeaderParseError,
    HipSysBuildError,
    LibraryDirNotFoundError,
    PathNotFoundError,
    ToolOutputParseError,
    ToolRootMismatchError,
    VersionIncompatibleError,
)
from .features import (
    HIP_PATCH_CATEGORY,
    ROCM_VERSION_CATEGORY,
    FeatureCategory,
    check_feature_count,
    declared_hip_patch,
    declared_rocm_version,
    decode_feature,
)
from .headers import HIP_VERSION_HEADER, get_hip_system_version, get_rocm_system_version
from .hipconfig import (
    SubprocessToolRunner,
    ToolRunner,
    get_hip_version,
    get_rocm_path,
    parse_rocm_library_directory_name,
)
from .patches import rocm_version_from_hip
from .paths import explicit_path_vars, resolve_candidates
from .version import Version

_CATEGORIES: dict[str, FeatureCategory] = {
    CATEGORY_ROCM: ROCM_VERSION_CATEGORY,
    CATEGORY_HIP: HIP_PATCH_CATEGORY,
}

# Per-candidate failures that move the search on to the next candidate.
_CANDIDATE_ERRORS = (
    HeaderParseError,
    LibraryDirNotFoundError,
    ToolOutputParseError,
    ToolRootMismatchError,
    VersionIncompatibleError,
)


@dataclass(frozen=True)
class DetectedVersions:
    root: Path
    rocm: Version
    hip: Version | None
    warnings: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "root": str(self.root),
            "rocm_version": str(self.rocm),
            "hip_version": str(self.hip) if self.hip is not None else None,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class CandidateMatch:
    detected: DetectedVersions
    declared_rocm: Version | None
    declared_hip_patch: int | None
    warnings: tuple[str, ...]
    fallback_features: tuple[str, ...]


@dataclass
class ProbeOutcome:
    directives: BuildDirectives
    root: Path | None = None
    library_dir: str | None = None
    match: CandidateMatch | None = None
    candidates: list[Path] = field(default_factory=list)
    rejected: list[tuple[Path, str]] = field(default_factory=list)

    @property
    def linked(self) -> bool:
        return self.root is not None

    @property
    def include_path(self) -> Path | None:
        if self.root is None:
            return None
        return self.root / "include"


def detect_versions(root: Path, strategy: str, runner: ToolRunner | None = None) -> DetectedVersions:
    if strategy == STRATEGY_TOOL:
        if runner is None:
            raise HipSysBuildError("The tool strategy requires a tool runner.")
        tool_root = Path(get_rocm_path(runner))
        if tool_root.resolve() != root.resolve():
            raise ToolRootMismatchError(
                f"'{runner.tool} -R' reports ROCm root '{tool_root}', not candidate '{root}'; its version does not describe this candidate."
            )
        hip = get_hip_version(runner)
        rocm, warning = rocm_version_from_hip(hip)
        return DetectedVersions(root=root, rocm=rocm, hip=hip, warnings=(warning,) if warning else ())

    rocm = get_rocm_system_version(root)
    hip = get_hip_system_version(root) if (root / HIP_VERSION_HEADER).is_file() else None
    return DetectedVersions(root=root, rocm=rocm, hip=hip)


def check_features(config: ProbeConfig) -> None:
    for name in config.feature_categories:
        category = _CATEGORIES[name]
        for switch in check_feature_count(config.environ, category, config.mode):
            decode_feature(switch, category)


def reconcile_candidate(root: Path, config: ProbeConfig, runner: ToolRunner | None = None) -> CandidateMatch:
    detected = detect_versions(root, config.strategy, runner)
    warnings = list(detected.warnings)
    fallback_features: list[str] = []
    results: dict[str, ReconciliationResult] = {}

    declared_rocm: Version | None = None
    if CATEGORY_ROCM in config.feature_categories:
        declared_rocm, selection = declared_rocm_version(config.environ, config.mode, detected.rocm)
        result = compare_versions(declared_rocm, detected.rocm)
        if not result.is_compatible:
            raise VersionIncompatibleError(incompatibility_message(result, "ROCm"))
        results["ROCm"] = result
        if selection.from_fallback:
            fallback_features.append(selection.feature_name)

    hip_patch: int | None = None
    if CATEGORY_HIP in config.feature_categories:
        if detected.hip is None:
            warnings.append(
                f"HIP version header '{HIP_VERSION_HEADER}' not found under '{root}'; the HIP patch feature was not verified."
            )
        else:
            hip_patch, selection = declared_hip_patch(config.environ, config.mode, detected.hip.patch)
            declared_hip = Version(detected.hip.major, detected.hip.minor, hip_patch)
            results["HIP"] = compare_versions(declared_hip, detected.hip)
            if selection.from_fallback:
                fallback_features.append(selection.feature_name)

    advisory = combined_advisory(results)
    if advisory:
        warnings.append(advisory)

    return CandidateMatch(
        detected=detected,
        declared_rocm=declared_rocm,
        declared_hip_patch=hip_patch,
        warnings=tuple(warnings),
        fallback_features=tuple(fallback_features),
    )


def library_directory(root: Path, strategy: str, runner: ToolRunner | None = None) -> tuple[str, Path]:
    """Return the library subdirectory name and the search path built from it."""
    if strategy == STRATEGY_TOOL and runner is not None:
        tool_root = runner.query(["-R"])
        name = parse_rocm_library_directory_name(tool_root, runner.query(["-l"]))
        library_path = Path(tool_root.strip()) / name
        if not library_path.is_dir():
            raise LibraryDirNotFoundError(
                f"Library directory '{library_path}' reported by '{runner.tool}' does not exist."
            )
        return name, library_path
    name = find_library_directory(root)
    return name, root / name


def run_probe(config: ProbeConfig, runner: ToolRunner | None = None) -> ProbeOutcome:
    """Resolve, validate and link a ROCm installation.

    Returns an outcome without link directives when nothing is installed and no
    path variable was set. Every other failure raises a HipSysBuildError.
    """
    directives = BuildDirectives()
    for name in config.env_vars:
        directives.rerun_if_env_changed(name)
    directives.rerun_if_changed(config.build_script)

    candidates = resolve_candidates(config.env_vars, config.default_path, config.marker, config.environ)
    outcome = ProbeOutcome(directives=directives, candidates=candidates)
    if not candidates:
        configured = explicit_path_vars(config.env_vars, config.environ)
        if configured:
            details = ", ".join(f"{name}='{config.environ[name]}'" for name in configured)
            raise PathNotFoundError(
                f"No ROCm installation found: none of the configured paths ({details}) nor the default "
                f"'{config.default_path}' contains '{config.marker}'. Checked variables: {', '.join(config.env_vars)}."
            )
        return outcome

    check_features(config)
    if config.strategy == STRATEGY_TOOL and runner is None:
        runner = SubprocessToolRunner(config.tool)

    errors: list[HipSysBuildError] = []
    for root in candidates:
        try:
            match = reconcile_candidate(root, config, runner)
            lib_dir, library_path = library_directory(root, config.strategy, runner)
        except _CANDIDATE_ERRORS as exc:
            errors.append(exc)
            outcome.rejected.append((root, str(exc)))
            continue

        for feature_name in match.fallback_features:
            directives.cfg_feature(feature_name)
        for warning in match.warnings:
            directives.warning(warning)
        emit_link_directives(directives, config.link_libraries, library_path)
        outcome.root = root
        outcome.library_dir = lib_dir
        outcome.match = match
        return outcome

    if len(errors) == 1:
        raise errors[0]
    reasons = "; ".join(f"'{root}': {reason}" for root, reason in outcome.rejected)
    raise AmbiguousCandidatesError(
        f"Found {len(candidates)} ROCm installation candidates but none is compatible: {reasons}"
    )
