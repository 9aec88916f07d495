"""
Entity analysis: ClassDescription -> EntityModel.

Markers are recognised in both the legacy ``javax.persistence`` and the modern
``jakarta.persistence`` namespace; either spelling counts and the first match
wins.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Optional

from .errors import NotAnEntity
from .model import (
    CLASS,
    AnnotationUsage,
    ClassDescription,
    EntityField,
    EntityModel,
    FieldDescription,
    RelationshipKind,
)
from .types import TypeResolver
from .utils import strip_quotes

PERSISTENCE_NAMESPACES = ("javax.persistence", "jakarta.persistence")


def _marker(simple: str) -> FrozenSet[str]:
    return frozenset(f"{ns}.{simple}" for ns in PERSISTENCE_NAMESPACES)


ENTITY = _marker("Entity")
ID = _marker("Id")
VERSION = _marker("Version")
TRANSIENT = _marker("Transient")
COLUMN = _marker("Column")
TABLE = _marker("Table")

RELATIONSHIP_MARKERS: Dict[RelationshipKind, FrozenSet[str]] = {
    RelationshipKind.MANY_TO_ONE: _marker("ManyToOne"),
    RelationshipKind.ONE_TO_MANY: _marker("OneToMany"),
    RelationshipKind.MANY_TO_MANY: _marker("ManyToMany"),
    RelationshipKind.ONE_TO_ONE: _marker("OneToOne"),
}

SERIALIZABLE = "java.io.Serializable"


def find_marker(annotations: Iterable[AnnotationUsage], marker: FrozenSet[str]) -> Optional[AnnotationUsage]:
    for ann in annotations:
        if ann.name in marker:
            return ann
    return None


def has_marker(annotations: Iterable[AnnotationUsage], marker: FrozenSet[str]) -> bool:
    return find_marker(annotations, marker) is not None


def relationship_of(annotations: Iterable[AnnotationUsage]) -> RelationshipKind:
    anns = list(annotations)
    for kind, marker in RELATIONSHIP_MARKERS.items():
        if has_marker(anns, marker):
            return kind
    return RelationshipKind.NONE


def _name_attribute(ann: Optional[AnnotationUsage]) -> Optional[str]:
    if ann is None:
        return None
    name = strip_quotes(ann.attributes.get("name", ""))
    return name or None


class EntityAnalyzer:
    def __init__(self, resolver: Optional[TypeResolver] = None) -> None:
        self.resolver = resolver or TypeResolver()

    def is_eligible(self, cls: Optional[ClassDescription]) -> bool:
        if cls is None or cls.kind != CLASS or cls.is_abstract:
            return False
        return has_marker(cls.annotations, ENTITY)

    def analyze(self, cls: ClassDescription) -> EntityModel:
        if not self.is_eligible(cls):
            raise NotAnEntity(cls.qualified_name if cls is not None else "<none>")

        fields: List[EntityField] = []
        id_field: Optional[EntityField] = None
        for fd in self.collect_fields(cls):
            ef = self.analyze_field(fd)
            fields.append(ef)
            if ef.is_id and id_field is None:
                id_field = ef

        return EntityModel(
            class_name=cls.name,
            package_name=cls.package,
            qualified_name=cls.qualified_name,
            table_name=self.table_name(cls),
            fields=tuple(fields),
            id_field=id_field,
        )

    @staticmethod
    def collect_fields(cls: ClassDescription) -> List[FieldDescription]:
        # Same-named fields in a subclass and an ancestor both survive.
        return [f for f in cls.all_fields() if not f.is_static and not f.is_final]

    @staticmethod
    def table_name(cls: ClassDescription) -> str:
        return _name_attribute(find_marker(cls.annotations, TABLE)) or cls.name.lower()

    def analyze_field(self, fd: FieldDescription) -> EntityField:
        resolver = self.resolver
        canonical = resolver.resolve(fd.type_name)
        collection_kind = resolver.collection_kind(fd.type_name)
        anns = fd.annotations

        return EntityField(
            name=fd.name,
            declared_type=fd.type_name,
            canonical_type=canonical,
            persisted_name=_name_attribute(find_marker(anns, COLUMN)) or fd.name.lower(),
            is_primitive=canonical.is_primitive,
            is_collection=collection_kind is not None,
            is_enum=fd.type_is_enum,
            is_id=has_marker(anns, ID),
            is_version=has_marker(anns, VERSION),
            is_transient=has_marker(anns, TRANSIENT) or "transient" in fd.modifiers,
            relationship=relationship_of(anns),
            collection_kind=collection_kind,
            element_type=resolver.element_type(fd.type_name) if collection_kind else None,
        )
