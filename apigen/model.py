from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from .types import BOXED_LONG, REFERENCE, CanonicalType

# ---------------- source structure (host input) ----------------

CLASS = "class"
INTERFACE = "interface"
ENUM = "enum"
ANNOTATION = "annotation"


@dataclass(frozen=True)
class AnnotationUsage:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class FieldDescription:
    name: str
    type_name: str
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[AnnotationUsage, ...] = ()
    type_is_enum: bool = False

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_final(self) -> bool:
        return "final" in self.modifiers


@dataclass(frozen=True)
class ClassDescription:
    name: str
    package: str = ""
    kind: str = CLASS
    modifiers: FrozenSet[str] = frozenset()
    annotations: Tuple[AnnotationUsage, ...] = ()
    fields: Tuple[FieldDescription, ...] = ()
    interfaces: Tuple[str, ...] = ()
    constructor_arities: Tuple[int, ...] = ()
    superclass: Optional["ClassDescription"] = None
    file_path: Optional[Path] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    def ancestors(self) -> Iterator["ClassDescription"]:
        seen = {self.qualified_name}
        cur = self.superclass
        while cur is not None and cur.qualified_name not in seen:
            seen.add(cur.qualified_name)
            yield cur
            cur = cur.superclass

    def hierarchy(self) -> List["ClassDescription"]:
        """This class followed by its ancestors, nearest first."""
        return [self, *self.ancestors()]

    def all_fields(self) -> List[FieldDescription]:
        out: List[FieldDescription] = []
        for cls in self.hierarchy():
            out.extend(cls.fields)
        return out


# ---------------- entity model ----------------

class RelationshipKind(str, Enum):
    NONE = "None"
    MANY_TO_ONE = "ManyToOne"
    ONE_TO_ONE = "OneToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_MANY = "ManyToMany"

    @property
    def is_association_collection(self) -> bool:
        return self in (RelationshipKind.ONE_TO_MANY, RelationshipKind.MANY_TO_MANY)

    @property
    def is_single_reference(self) -> bool:
        return self in (RelationshipKind.MANY_TO_ONE, RelationshipKind.ONE_TO_ONE)


@dataclass(frozen=True)
class EntityField:
    name: str
    declared_type: str
    canonical_type: CanonicalType
    persisted_name: str
    is_primitive: bool = False
    is_collection: bool = False
    is_enum: bool = False
    is_id: bool = False
    is_version: bool = False
    is_transient: bool = False
    relationship: RelationshipKind = RelationshipKind.NONE
    collection_kind: Optional[str] = None
    element_type: Optional[CanonicalType] = None


@dataclass(frozen=True)
class EntityModel:
    class_name: str
    package_name: str
    qualified_name: str
    table_name: str
    fields: Tuple[EntityField, ...] = ()
    id_field: Optional[EntityField] = None

    @property
    def entity_type(self) -> CanonicalType:
        return CanonicalType(REFERENCE, self.class_name, self.package_name)

    @property
    def id_type(self) -> CanonicalType:
        if self.id_field is None:
            return BOXED_LONG
        return self.id_field.canonical_type.boxed()

    def field_named(self, name: str) -> Optional[EntityField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


# ---------------- generated output ----------------

class ArtifactKind(str, Enum):
    DTO = "DTO"
    REPOSITORY = "Repository"
    SERVICE = "Service"
    CONTROLLER = "Controller"
    MAPPER = "Mapper"


@dataclass(frozen=True)
class GeneratedArtifact:
    kind: ArtifactKind
    package_name: str
    class_name: str
    source_text: str

    @property
    def qualified_name(self) -> str:
        return f"{self.package_name}.{self.class_name}" if self.package_name else self.class_name

    @property
    def relative_path(self) -> str:
        pkg_path = self.package_name.replace(".", "/")
        return f"{pkg_path}/{self.class_name}.java" if pkg_path else f"{self.class_name}.java"
