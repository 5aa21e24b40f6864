from __future__ import annotations


class HipSysBuildError(Exception):
    pass


class PathNotFoundError(HipSysBuildError):
    pass


class AmbiguousCandidatesError(HipSysBuildError):
    pass


class HeaderParseError(HipSysBuildError):
    pass


class ToolInvocationError(HipSysBuildError):
    pass


class ToolOutputParseError(HipSysBuildError):
    pass


class FeatureCountError(HipSysBuildError):
    pass


class FeatureDecodeError(HipSysBuildError):
    pass


class VersionIncompatibleError(HipSysBuildError):
    pass


class LibraryDirNotFoundError(PathNotFoundError):
    pass


class ToolRootMismatchError(HipSysBuildError):
    pass
