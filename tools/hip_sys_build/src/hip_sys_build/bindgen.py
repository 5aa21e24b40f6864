from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import HipSysBuildError
from .hipconfig import ToolRunner, get_hip_include_path, get_hip_patch_version, get_rocm_path

BINDGEN = "bindgen"
WRAPPER_HEADER = "wrapper.h"
HIP_PLATFORM_DEFINE = "-D__HIP_PLATFORM_AMD__"


@dataclass(frozen=True)
class BindgenJob:
    crate_dir: Path
    header_path: Path
    output_path: Path

    def as_dict(self) -> dict[str, str]:
        return {
            "crate_dir": str(self.crate_dir),
            "header_path": str(self.header_path),
            "output_path": str(self.output_path),
        }


@dataclass(frozen=True)
class BindgenContext:
    rocm_path: str
    include_path: str
    hip_patch: str


def bindings_file_name(hip_patch: str) -> str:
    return f"bindings_{hip_patch}.rs"


def plan_bindgen_job(crate_dir: Path, hip_patch: str) -> BindgenJob:
    if not crate_dir.is_dir():
        raise HipSysBuildError(f"Cannot find input path: {crate_dir}")
    header_path = crate_dir / WRAPPER_HEADER
    if not header_path.is_file():
        raise HipSysBuildError(f"Cannot find wrapper header: {header_path}")
    output_dir = crate_dir / "src" / "bindings"
    if not output_dir.is_dir():
        raise HipSysBuildError(f"Cannot find output path: {output_dir}")
    return BindgenJob(
        crate_dir=crate_dir,
        header_path=header_path,
        output_path=output_dir / bindings_file_name(hip_patch),
    )


def bindgen_arguments(job: BindgenJob, include_path: str) -> list[str]:
    return [
        str(job.header_path),
        "--no-layout-tests",
        "--output",
        str(job.output_path),
        "--",
        HIP_PLATFORM_DEFINE,
        f"-I{include_path}",
    ]


def query_bindgen_context(hipconfig: ToolRunner) -> BindgenContext:
    return BindgenContext(
        rocm_path=get_rocm_path(hipconfig),
        include_path=get_hip_include_path(hipconfig),
        hip_patch=get_hip_patch_version(hipconfig),
    )


def run_bindgen(crate_dirs: list[Path], hipconfig: ToolRunner, generator: ToolRunner) -> tuple[BindgenContext, list[BindgenJob]]:
    context = query_bindgen_context(hipconfig)
    # Plan everything first so a bad crate directory fails before any file is written.
    jobs = [plan_bindgen_job(crate_dir, context.hip_patch) for crate_dir in crate_dirs]
    for job in jobs:
        generator.query(bindgen_arguments(job, context.include_path))
    return context, jobs
