from __future__ import annotations

import re
import shutil
import subprocess
from abc import ABC, abstractmethod

from .errors import ToolInvocationError, ToolOutputParseError
from .version import Version

HIPCONFIG = "hipconfig"

_HIP_BUILD_NUMBER = re.compile(r"\d+\.\d+\.(\d+)-")
_HIP_VERSION = re.compile(r"(\d+)\.(\d+)\.(\d+)-")


def missing_tool_message(tool: str) -> str:
    if tool == HIPCONFIG:
        return (
            f"'{tool}' was not found in PATH. Make sure ROCm is installed and that "
            f"'{tool}' is reachable through the PATH environment variable."
        )
    return f"'{tool}' was not found in PATH. Install it or add its directory to the PATH environment variable."


class ToolRunner(ABC):
    """Narrow capability over an external query tool: ``query(args) -> stdout``."""

    tool = HIPCONFIG

    @abstractmethod
    def query(self, args: list[str]) -> str:
        ...


class SubprocessToolRunner(ToolRunner):
    def __init__(self, tool: str = HIPCONFIG) -> None:
        self.tool = tool

    def query(self, args: list[str]) -> str:
        executable = shutil.which(self.tool)
        if executable is None:
            raise ToolInvocationError(missing_tool_message(self.tool))
        command = [executable, *args]
        try:
            proc = subprocess.run(command, check=True, capture_output=True, text=True)
        except OSError as exc:
            raise ToolInvocationError(f"Failed to run '{' '.join(command)}': {exc}") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or (exc.stdout or "").strip()
            raise ToolInvocationError(
                f"'{' '.join(command)}' exited with status {exc.returncode}: {detail or '<no output>'}"
            ) from exc
        return proc.stdout


def parse_hip_build_number(version_output: str) -> str:
    match = _HIP_BUILD_NUMBER.search(version_output)
    if not match:
        raise ToolOutputParseError(
            f"Could not extract the HIP build number from version output '{version_output.strip()}'."
        )
    return match.group(1)


def parse_hip_version(version_output: str) -> Version:
    match = _HIP_VERSION.search(version_output)
    if not match:
        raise ToolOutputParseError(
            f"Could not extract the HIP version from version output '{version_output.strip()}'."
        )
    try:
        return Version(major=int(match.group(1)), minor=int(match.group(2)), patch=int(match.group(3)))
    except ValueError as exc:
        raise ToolOutputParseError(f"HIP version output '{version_output.strip()}' is out of range: {exc}") from exc


def parse_rocm_library_directory_name(rocm_path: str, library_path: str) -> str:
    rocm = rocm_path.strip().rstrip("/")
    library = library_path.strip()
    match = re.match(rf"^{re.escape(rocm)}/([^/]+)", library)
    if not match:
        raise ToolOutputParseError(
            f"Failed to extract the library directory from '{library}' under ROCm root '{rocm}'."
        )
    return match.group(1)


def get_rocm_path(runner: ToolRunner) -> str:
    return runner.query(["-R"]).strip()


def get_hip_path(runner: ToolRunner) -> str:
    return runner.query(["-p"]).strip()


def get_hip_include_path(runner: ToolRunner) -> str:
    return f"{get_hip_path(runner).rstrip('/')}/include"


def get_hip_patch_version(runner: ToolRunner) -> str:
    return parse_hip_build_number(runner.query(["--version"]))


def get_hip_version(runner: ToolRunner) -> Version:
    return parse_hip_version(runner.query(["--version"]))


def get_rocm_library_directory_name(runner: ToolRunner) -> str:
    rocm_path = runner.query(["-R"])
    library_path = runner.query(["-l"])
    return parse_rocm_library_directory_name(rocm_path, library_path)
