"""Entity API generator: JPA entity -> DTO, Mapper, Repository, Service, Controller."""

from .analyzer import EntityAnalyzer
from .conflicts import Choice, ConflictDecision, ConflictResolver, DecisionContext, always
from .errors import (
    ApiGenError,
    ConfigError,
    EmissionError,
    GenerationFailure,
    NotAnEntity,
    SourceParseError,
)
from .generators import GENERATORS, generate_all, project_fields
from .hub import ApiGenHub, GenerationReport
from .model import ArtifactKind, ClassDescription, EntityModel, GeneratedArtifact
from .policy import ArtifactPolicy, GenerationPolicy, load_policy
from .sink import FileSystemSink, MemorySink
from .types import TypeResolver
from .validation import StructuralValidator, ValidationResult

__all__ = [
    "ApiGenError",
    "ApiGenHub",
    "ArtifactKind",
    "ArtifactPolicy",
    "Choice",
    "ClassDescription",
    "ConfigError",
    "ConflictDecision",
    "ConflictResolver",
    "DecisionContext",
    "EmissionError",
    "EntityAnalyzer",
    "EntityModel",
    "FileSystemSink",
    "GENERATORS",
    "GeneratedArtifact",
    "GenerationFailure",
    "GenerationPolicy",
    "GenerationReport",
    "MemorySink",
    "NotAnEntity",
    "SourceParseError",
    "StructuralValidator",
    "TypeResolver",
    "ValidationResult",
    "always",
    "generate_all",
    "load_policy",
    "project_fields",
]
