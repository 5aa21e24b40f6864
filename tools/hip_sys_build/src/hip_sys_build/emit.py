from __future__ import annotations

from pathlib import Path

from .errors import LibraryDirNotFoundError

DEFAULT_LINK_LIBRARIES = ("hiprtc", "amdhip64")
LIBRARY_DIR_CANDIDATES = ("lib", "lib64")


class BuildDirectives:
    """Ordered collection of ``cargo:`` build script directives."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.warnings: list[str] = []

    def _add(self, key: str, value: str) -> None:
        self.lines.append(f"cargo:{key}={value}")

    def link_lib(self, name: str) -> None:
        self._add("rustc-link-lib", f"dylib={name}")

    def link_search(self, path: Path | str) -> None:
        self._add("rustc-link-search", f"native={path}")

    def warning(self, message: str) -> None:
        self.warnings.append(message)
        # Cargo reads one directive per line.
        for line in message.splitlines() or [""]:
            self._add("warning", line)

    def rerun_if_env_changed(self, name: str) -> None:
        self._add("rerun-if-env-changed", name)

    def rerun_if_changed(self, path: str) -> None:
        self._add("rerun-if-changed", path)

    def cfg_feature(self, feature_name: str) -> None:
        self._add("rustc-cfg", f'feature="{feature_name}"')

    def link_lines(self) -> list[str]:
        return [line for line in self.lines if line.startswith(("cargo:rustc-link-lib=", "cargo:rustc-link-search="))]

    def render(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)


def find_library_directory(root: Path) -> str:
    for name in LIBRARY_DIR_CANDIDATES:
        if (root / name).is_dir():
            return name
    raise LibraryDirNotFoundError(
        f"No library directory ({', '.join(LIBRARY_DIR_CANDIDATES)}) found under ROCm installation '{root}'."
    )


def emit_link_directives(directives: BuildDirectives, libraries: tuple[str, ...], library_path: Path) -> None:
    for name in libraries:
        directives.link_lib(name)
    directives.link_search(library_path)
