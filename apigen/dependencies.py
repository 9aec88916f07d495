"""
Dependency gate.

The core asks a boolean oracle, once per feature the policy actually needs,
whether the target project can compile the generated code. Snippet rendering
is a pure text convenience; no build file is ever edited.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .model import ArtifactKind
from .policy import GenerationPolicy
from .utils import EXCLUDE_DIRS, read_text

FeatureOracle = Callable[[str], bool]

JPA_ENTITY = "JPA Entity"
SPRING_DATA_JPA = "Spring Data JPA"
SPRING_WEB = "Spring Web"
MAPSTRUCT = "MapStruct"
LOMBOK = "Lombok"

JAKARTA_PERSISTENCE_VERSION = "3.1.0"
MAPSTRUCT_VERSION = "1.5.3.Final"
LOMBOK_VERSION = "1.18.28"

OK = "ok"
MISSING = "missing"

# ---------------- coordinates ----------------

@dataclass(frozen=True)
class Coordinate:
    group: str
    artifact: str
    version: Optional[str] = None
    maven_scope: Optional[str] = None
    gradle_config: str = "implementation"

    @property
    def notation(self) -> str:
        out = f"{self.group}:{self.artifact}"
        return f"{out}:{self.version}" if self.version else out


COORDINATES: Dict[str, Tuple[Coordinate, ...]] = {
    JPA_ENTITY: (
        Coordinate("jakarta.persistence", "jakarta.persistence-api", JAKARTA_PERSISTENCE_VERSION),
    ),
    SPRING_DATA_JPA: (
        Coordinate("org.springframework.boot", "spring-boot-starter-data-jpa"),
    ),
    SPRING_WEB: (
        Coordinate("org.springframework.boot", "spring-boot-starter-web"),
    ),
    MAPSTRUCT: (
        Coordinate("org.mapstruct", "mapstruct", MAPSTRUCT_VERSION),
        Coordinate("org.mapstruct", "mapstruct-processor", MAPSTRUCT_VERSION,
                   maven_scope="provided", gradle_config="annotationProcessor"),
    ),
    LOMBOK: (
        Coordinate("org.projectlombok", "lombok", LOMBOK_VERSION,
                   maven_scope="provided", gradle_config="compileOnly"),
        Coordinate("org.projectlombok", "lombok", LOMBOK_VERSION,
                   maven_scope="provided", gradle_config="annotationProcessor"),
    ),
}

# Artifact ids that satisfy a feature when found in a build file.
PROVIDERS: Dict[str, Tuple[str, ...]] = {
    JPA_ENTITY: (
        "jakarta.persistence-api", "javax.persistence-api", "persistence-api",
        "spring-boot-starter-data-jpa", "hibernate-core",
    ),
    SPRING_DATA_JPA: ("spring-boot-starter-data-jpa", "spring-data-jpa"),
    SPRING_WEB: ("spring-boot-starter-web", "spring-webmvc"),
    MAPSTRUCT: ("mapstruct",),
    LOMBOK: ("lombok",),
}

# ---------------- gate ----------------

def required_features(policy: GenerationPolicy) -> List[str]:
    out = [JPA_ENTITY]
    if policy.enabled(ArtifactKind.REPOSITORY):
        out.append(SPRING_DATA_JPA)
    if policy.enabled(ArtifactKind.CONTROLLER):
        out.append(SPRING_WEB)
    if policy.enabled(ArtifactKind.MAPPER) and policy.enabled(ArtifactKind.DTO):
        out.append(MAPSTRUCT)
    if policy.enabled(ArtifactKind.DTO) and policy.use_accessor_annotation_style:
        out.append(LOMBOK)
    return out


@dataclass(frozen=True)
class DependencyReport:
    status: str
    missing: Tuple[str, ...] = ()
    checked: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status == OK


def check_dependencies(oracle: FeatureOracle, policy: GenerationPolicy) -> DependencyReport:
    checked = tuple(required_features(policy))
    missing = tuple(f for f in checked if not oracle(f))
    return DependencyReport(MISSING if missing else OK, missing, checked)


# ---------------- snippets ----------------

def _maven_block(c: Coordinate) -> str:
    lines = [
        "<dependency>",
        f"    <groupId>{c.group}</groupId>",
        f"    <artifactId>{c.artifact}</artifactId>",
    ]
    if c.version:
        lines.append(f"    <version>{c.version}</version>")
    if c.maven_scope:
        lines.append(f"    <scope>{c.maven_scope}</scope>")
    lines.append("</dependency>")
    return "\n".join(lines)


def maven_snippet(missing: Sequence[str]) -> str:
    if not missing:
        return ""
    blocks: List[str] = []
    for feature in missing:
        for c in COORDINATES.get(feature, ()):
            block = _maven_block(c)
            if block not in blocks:
                blocks.append(block)
    return "\n".join(["<!-- missing dependencies -->", *blocks]) + "\n"


def gradle_snippet(missing: Sequence[str], kts: bool = False) -> str:
    if not missing:
        return ""
    lines = ["// missing dependencies"]
    for feature in missing:
        for c in COORDINATES.get(feature, ()):
            if kts:
                lines.append(f'{c.gradle_config}("{c.notation}")')
            else:
                lines.append(f"{c.gradle_config} '{c.notation}'")
    return "\n".join(lines) + "\n"


# ---------------- oracles ----------------

class AlwaysAvailable:
    """Answers yes to every feature; for non-interactive runs."""

    def __call__(self, feature: str) -> bool:
        return True


def find_build(root: Path) -> Tuple[str, Optional[Path]]:
    pom = root / "pom.xml"
    if pom.exists():
        return "maven", pom
    bg = root / "build.gradle"
    if bg.exists():
        return "gradle_groovy", bg
    bk = root / "build.gradle.kts"
    if bk.exists():
        return "gradle_kts", bk

    for name, kind in (("pom.xml", "maven"), ("build.gradle.kts", "gradle_kts"), ("build.gradle", "gradle_groovy")):
        for pth in sorted(root.rglob(name)):
            if not any(x in pth.parts for x in EXCLUDE_DIRS):
                return kind, pth

    return "unknown", None


class BuildFileOracle:
    """Answers from the artifact coordinates declared in a Maven or Gradle build file."""

    def __init__(self, build_kind: str, build_text: str) -> None:
        self.build_kind = build_kind
        self.text = build_text

    @classmethod
    def for_root(cls, root: Path) -> "BuildFileOracle":
        kind, path = find_build(root)
        return cls(kind, read_text(path) if path else "")

    def has_artifact(self, artifact: str) -> bool:
        if self.build_kind == "maven":
            return f"<artifactId>{artifact}</artifactId>" in self.text
        return f":{artifact}:" in self.text or f":{artifact}'" in self.text or f':{artifact}"' in self.text

    def __call__(self, feature: str) -> bool:
        providers = PROVIDERS.get(feature)
        if not providers:
            return True
        return any(self.has_artifact(a) for a in providers)
