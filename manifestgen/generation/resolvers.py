"""Resource and build-output root lookups."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ResourceResolver(Protocol):
    def resolve(self, template_path: str) -> Path: ...


class OutputResolver(Protocol):
    def resolve(self, output_dir: str) -> Path: ...


class ResourcesDirectory:
    """Resolves template paths against a resources root."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def resolve(self, template_path: str) -> Path:
        return self.root / template_path


class BuildDirectory:
    """Resolves output directories against the build root, made absolute."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def resolve(self, output_dir: str) -> Path:
        return (self.root / output_dir).absolute()
