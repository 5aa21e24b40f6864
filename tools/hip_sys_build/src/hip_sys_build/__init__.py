from .compare import ReconciliationResult, compare_versions
from .config import ProbeConfig, load_probe_config
from .errors import HipSysBuildError
from .hipconfig import SubprocessToolRunner, ToolRunner
from .patches import map_hip_patch
from .probe import ProbeOutcome, run_probe
from .version import Version

__all__ = [
    "HipSysBuildError",
    "ProbeConfig",
    "ProbeOutcome",
    "ReconciliationResult",
    "SubprocessToolRunner",
    "ToolRunner",
    "Version",
    "compare_versions",
    "load_probe_config",
    "map_hip_patch",
    "run_probe",
]
