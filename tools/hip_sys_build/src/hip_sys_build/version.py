from __future__ import annotations

from dataclasses import dataclass

U8_MAX = 0xFF
U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        for name, value, limit in (
            ("major", self.major, U8_MAX),
            ("minor", self.minor, U8_MAX),
            ("patch", self.patch, U32_MAX),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= limit:
                raise ValueError(f"Version {name} must be an integer in [0, {limit}], got {value!r}.")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def as_dict(self) -> dict[str, int]:
        return {
            "major": self.major,
            "minor": self.minor,
            "patch": self.patch,
        }
