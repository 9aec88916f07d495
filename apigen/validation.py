from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .analyzer import (
    ENTITY,
    ID,
    SERIALIZABLE,
    has_marker,
    relationship_of,
)
from .model import ClassDescription, EntityModel
from .types import TypeResolver


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def merged(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(self.errors + other.errors, self.warnings + other.warnings)


class StructuralValidator:
    """Collects every problem instead of stopping at the first one."""

    def __init__(self, resolver: Optional[TypeResolver] = None) -> None:
        self.resolver = resolver or TypeResolver()

    def validate_entity(self, cls: ClassDescription) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        if not has_marker(cls.annotations, ENTITY):
            errors.append(f"Class {cls.name} is not annotated with @Entity")

        if cls.is_abstract:
            errors.append(f"Class {cls.name} is abstract and cannot be instantiated")

        if cls.constructor_arities and 0 not in cls.constructor_arities:
            errors.append(f"Class {cls.name} has no no-argument constructor")

        fields = [f for f in cls.all_fields() if not f.is_static and not f.is_final]
        if not any(has_marker(f.annotations, ID) for f in fields):
            errors.append(f"Class {cls.name} has no field annotated with @Id")

        for f in fields:
            kind = relationship_of(f.annotations)
            if kind.is_association_collection and not self.resolver.is_collection(f.type_name):
                errors.append(
                    f"Field {f.name} is annotated with @{kind.value} but its type "
                    f"{f.type_name} is not a collection"
                )

        if not any(SERIALIZABLE in c.interfaces for c in cls.hierarchy()):
            warnings.append(f"Class {cls.name} does not implement java.io.Serializable")

        return ValidationResult(tuple(errors), tuple(warnings))

    def validate_model(self, model: EntityModel) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        if model.id_field is None:
            errors.append(f"Entity {model.class_name} has no identifier field")

        for f in model.fields:
            if f.relationship.is_association_collection and not f.is_collection:
                errors.append(
                    f"Field {f.name} has relationship {f.relationship.value} but is not a collection"
                )
            if f.is_collection and f.element_type is None:
                warnings.append(f"Collection field {f.name} has no generic element type")

        return ValidationResult(tuple(errors), tuple(warnings))

