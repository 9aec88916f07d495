from __future__ import annotations

from pathlib import Path
from typing import Optional


class ApiGenError(Exception):
    """Base class for every error raised by apigen."""


class NotAnEntity(ApiGenError):
    def __init__(self, qualified_name: str) -> None:
        super().__init__(f"Not a valid JPA entity: {qualified_name}")
        self.qualified_name = qualified_name


class SourceParseError(ApiGenError):
    def __init__(self, path: Optional[Path], detail: str) -> None:
        where = str(path) if path else "<source>"
        super().__init__(f"Cannot parse {where}: {detail}")
        self.path = path
        self.detail = detail


class ConfigError(ApiGenError):
    pass


class EmissionError(ApiGenError):
    """A sink could not write one artifact."""

    def __init__(self, package_name: str, class_name: str, detail: str) -> None:
        super().__init__(f"Cannot write {package_name}.{class_name}: {detail}")
        self.package_name = package_name
        self.class_name = class_name
        self.detail = detail

    @property
    def file_name(self) -> str:
        return f"{self.class_name}.java"


class GenerationFailure(ApiGenError):
    """Stops the remaining batch. Files already written stay on disk."""

    def __init__(self, kind: str, package_name: str, class_name: str, cause: Exception) -> None:
        super().__init__(f"{kind} {package_name}.{class_name}: {cause}")
        self.kind = kind
        self.package_name = package_name
        self.class_name = class_name
        self.cause = cause
