from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

PackageSource = Literal["apt", "deb", "apt-repo"]


@dataclass(frozen=True)
class ExtensionSpec:
    name: str  # SQL name used by CREATE EXTENSION
    label: str
    source: PackageSource
    description: str
    preload: bool = False
    requires: tuple[str, ...] = ()


@dataclass(frozen=True)
class InstalledExtension:
    name: str
    version: Optional[str]


@dataclass(frozen=True)
class BuildStep:
    comment: str
    instruction: str

    def render(self) -> str:
        return f"# {self.comment}\n{self.instruction}"


@dataclass(frozen=True)
class SmokeResult:
    name: str
    passed: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)
