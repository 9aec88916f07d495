"""
Generation policy: which artifacts to emit, how to name them and where to put them.

Policies are frozen values. Layering is defaults -> ``.apigen/config.json`` -> CLI
flags; every layer returns a new value via ``dataclasses.replace``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError
from .model import ArtifactKind, EntityModel
from .utils import join_package, read_text

CONFIG_DIR = ".apigen"
CONFIG_FILE = "config.json"


@dataclass(frozen=True)
class ArtifactPolicy:
    enabled: bool = True
    class_name_suffix: str = ""
    sub_package: str = ""


def _default(suffix: str, sub_package: str):
    return field(default_factory=lambda: ArtifactPolicy(True, suffix, sub_package))


@dataclass(frozen=True)
class GenerationPolicy:
    dto: ArtifactPolicy = _default("Dto", "dto")
    repository: ArtifactPolicy = _default("Repository", "repository")
    service: ArtifactPolicy = _default("Service", "service")
    controller: ArtifactPolicy = _default("Controller", "controller")
    mapper: ArtifactPolicy = _default("Mapper", "mapper")
    base_package: str = ""
    use_accessor_annotation_style: bool = True
    repository_query_methods: bool = True
    api_prefix: str = ""
    overwrite_existing: bool = False

    def artifact(self, kind: ArtifactKind) -> ArtifactPolicy:
        return getattr(self, _ATTR[kind])

    def enabled(self, kind: ArtifactKind) -> bool:
        return self.artifact(kind).enabled

    def with_artifact(self, kind: ArtifactKind, **changes: Any) -> "GenerationPolicy":
        return replace(self, **{_ATTR[kind]: replace(self.artifact(kind), **changes)})

    # ---------------- JSON shape ----------------

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {k: getattr(self, k) for k in _SCALARS}
        out["artifacts"] = {
            _ATTR[kind]: {
                "enabled": ap.enabled,
                "class_name_suffix": ap.class_name_suffix,
                "sub_package": ap.sub_package,
            }
            for kind, ap in ((k, self.artifact(k)) for k in ArtifactKind)
        }
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["GenerationPolicy"] = None) -> "GenerationPolicy":
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        policy = base or cls()

        unknown = set(data) - set(_SCALARS) - {"artifacts"}
        if unknown:
            raise ConfigError(f"unknown config key(s): {', '.join(sorted(unknown))}")

        changes: Dict[str, Any] = {}
        for key, expected in _SCALARS.items():
            if key in data:
                changes[key] = _typed(key, data[key], expected)
        policy = replace(policy, **changes)

        artifacts = data.get("artifacts", {})
        if not isinstance(artifacts, dict):
            raise ConfigError("'artifacts' must be an object")
        by_name = {v: k for k, v in _ATTR.items()}
        for name, raw in artifacts.items():
            kind = by_name.get(name)
            if kind is None:
                raise ConfigError(f"unknown artifact: {name}")
            if not isinstance(raw, dict):
                raise ConfigError(f"artifacts.{name} must be an object")
            bad = set(raw) - set(_ARTIFACT_KEYS)
            if bad:
                raise ConfigError(f"unknown key(s) in artifacts.{name}: {', '.join(sorted(bad))}")
            policy = policy.with_artifact(
                kind, **{k: _typed(f"artifacts.{name}.{k}", v, _ARTIFACT_KEYS[k]) for k, v in raw.items()}
            )
        return policy


_ATTR: Dict[ArtifactKind, str] = {
    ArtifactKind.DTO: "dto",
    ArtifactKind.REPOSITORY: "repository",
    ArtifactKind.SERVICE: "service",
    ArtifactKind.CONTROLLER: "controller",
    ArtifactKind.MAPPER: "mapper",
}

_SCALARS: Dict[str, type] = {
    f.name: (bool if f.type in ("bool", bool) else str)
    for f in fields(GenerationPolicy)
    if f.name not in _ATTR.values()
}

_ARTIFACT_KEYS: Dict[str, type] = {"enabled": bool, "class_name_suffix": str, "sub_package": str}


def _typed(key: str, value: Any, expected: type) -> Any:
    if not isinstance(value, expected):
        raise ConfigError(f"{key} must be {expected.__name__}, got {type(value).__name__}")
    return value


# ---------------- packages ----------------

def resolve_package(model: EntityModel, policy: GenerationPolicy, sub_package: str) -> str:
    """``base_package + "." + sub_package``; the entity's package when no base is set."""
    base = policy.base_package.strip() or model.package_name
    return join_package(base, sub_package)


# ---------------- config file ----------------

def config_path(root: Path) -> Path:
    return root / CONFIG_DIR / CONFIG_FILE


def load_policy(path: Path, base: Optional[GenerationPolicy] = None) -> GenerationPolicy:
    base = base or GenerationPolicy()
    if not path.exists():
        return base
    try:
        data = json.loads(read_text(path))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON ({e.msg} at line {e.lineno})") from e
    try:
        return GenerationPolicy.from_dict(data, base)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
