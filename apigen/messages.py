"""User-facing messages for the conditions a generation run can end in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class Message:
    level: str
    code: str
    title: str
    description: str
    suggestions: Tuple[str, ...] = ()


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {x}" for x in items)


def invalid_entity(errors: Sequence[str]) -> Message:
    return Message(
        ERROR,
        "ENTITY_INVALID",
        "Invalid JPA entity",
        "The selected entity has errors that prevent code generation. "
        "Fix the following problems:\n\n" + _bullets(errors),
        (
            "Make sure the class is annotated with JPA @Entity",
            "Check that the class has a field annotated with @Id",
            "If the class is abstract, use a concrete class instead",
            "Add a no-argument constructor if there is none",
            "Use collections (List, Set, ...) for OneToMany and ManyToMany relationships",
        ),
    )


def entity_warnings(warnings: Sequence[str]) -> Message:
    return Message(
        WARNING,
        "ENTITY_WARNINGS",
        "JPA entity warnings",
        "The selected entity has warnings that do not block generation "
        "but may cause problems:\n\n" + _bullets(warnings),
        (
            "Consider implementing java.io.Serializable",
            "Give every collection an explicit generic type",
            "Avoid circular references between relationships",
            "Use FetchType.LAZY for large collections",
        ),
    )


def missing_dependencies(missing: Sequence[str], maven: str, gradle: str) -> Message:
    return Message(
        WARNING,
        "MISSING_DEPENDENCIES",
        "Missing project dependencies",
        "The generated code needs libraries that are not in your project. "
        "Missing:\n\n" + _bullets(missing) + "\n\nThe generated code will not compile without them.",
        (
            "For Maven, add to pom.xml:\n\n" + maven,
            "For Gradle, add to build.gradle:\n\n" + gradle,
            "Reload the project after adding the dependencies",
        ),
    )


def file_write_error(detail: str, file_name: str) -> Message:
    return Message(
        ERROR,
        "FILE_WRITE_ERROR",
        "Error while writing a file",
        f"An error occurred while writing {file_name}.\n\nDetails: {detail}",
        (
            "Check that you have write permission in the target directory",
            "Close the file if another program has it open",
        ),
    )


def generation_success(count: int) -> Message:
    return Message(
        INFO,
        "GENERATION_SUCCESS",
        "Generation complete",
        f"{count} file(s) generated.",
        ("Check that every required dependency is present in your project",),
    )
