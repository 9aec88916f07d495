from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .analyzer import EntityAnalyzer
from .conflicts import (
    AlternativeName,
    Choice,
    ConflictDecision,
    ConflictResolver,
    DecisionContext,
    DecisionOracle,
    always,
    rename_declaration,
)
from .dependencies import AlwaysAvailable, DependencyReport, FeatureOracle, check_dependencies
from .errors import EmissionError, GenerationFailure
from .generators import GENERATED_MARKER, generate_all
from .model import ArtifactKind, ClassDescription, EntityModel, GeneratedArtifact
from .policy import GenerationPolicy
from .sink import ArtifactSink
from .validation import StructuralValidator, ValidationResult


LogFn = Callable[[str], None]
ConfirmWarningsFn = Callable[[Sequence[str]], bool]
ConfirmDependenciesFn = Callable[[DependencyReport], bool]

OK = "ok"
INVALID = "invalid"
CANCELLED = "cancelled"
FAILED = "failed"


@dataclass(frozen=True)
class ArtifactRef:
    kind: ArtifactKind
    package_name: str
    class_name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.package_name}.{self.class_name}" if self.package_name else self.class_name


@dataclass
class GenerationReport:
    status: str
    written: List[ArtifactRef] = field(default_factory=list)
    skipped: List[ArtifactRef] = field(default_factory=list)
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    missing_dependencies: Tuple[str, ...] = ()
    failure: Optional[GenerationFailure] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def _silent(line: str) -> None:
    return None


def _decline(_) -> bool:
    return False


class ApiGenHub:
    def __init__(
        self,
        sink: ArtifactSink,
        *,
        analyzer: Optional[EntityAnalyzer] = None,
        validator: Optional[StructuralValidator] = None,
        dependency_oracle: Optional[FeatureOracle] = None,
        decision_oracle: Optional[DecisionOracle] = None,
        alternative_name: Optional[AlternativeName] = None,
        on_line: Optional[LogFn] = None,
    ) -> None:
        self.sink = sink
        self.analyzer = analyzer or EntityAnalyzer()
        self.validator = validator or StructuralValidator(self.analyzer.resolver)
        self.dependency_oracle = dependency_oracle or AlwaysAvailable()
        self.resolver = ConflictResolver(decision_oracle or always(Choice.SKIP), alternative_name)
        self.log = on_line or _silent

    def preview(self, model: EntityModel, policy: GenerationPolicy) -> List[GeneratedArtifact]:
        return generate_all(model, policy)

    def run(
        self,
        cls: ClassDescription,
        policy: GenerationPolicy,
        *,
        confirm_warnings: Optional[ConfirmWarningsFn] = None,
        confirm_dependencies: Optional[ConfirmDependenciesFn] = None,
    ) -> GenerationReport:
        confirm_warnings = confirm_warnings or _decline
        confirm_dependencies = confirm_dependencies or _decline
        self.log(f"[INFO] Entity: {cls.qualified_name}")

        checked = self.validator.validate_entity(cls)
        report = self._gate(checked, confirm_warnings)
        if report is not None:
            return report

        model = self.analyzer.analyze(cls)
        model_checked = self.validator.validate_model(model)
        report = self._gate(model_checked, confirm_warnings, prior=checked)
        if report is not None:
            return report
        warnings = checked.warnings + model_checked.warnings

        deps = check_dependencies(self.dependency_oracle, policy)
        if not deps.ok:
            for name in deps.missing:
                self.log(f"[WARN] Missing dependency: {name}")
            if not confirm_dependencies(deps):
                self.log("[INFO] Cancelled: missing dependencies")
                return GenerationReport(CANCELLED, warnings=warnings, missing_dependencies=deps.missing)

        artifacts = self.preview(model, policy)
        plan = self._plan(artifacts, policy)
        if plan is None:
            self.log("[INFO] Cancelled while resolving conflicts")
            return GenerationReport(
                CANCELLED,
                skipped=[self._ref(a) for a in artifacts],
                warnings=warnings,
                missing_dependencies=deps.missing,
            )

        report = GenerationReport(OK, warnings=warnings, missing_dependencies=deps.missing)
        for artifact, decision in plan:
            if decision.is_skip:
                self.log(f"[SKIP] {artifact.qualified_name}")
                report.skipped.append(self._ref(artifact))
                continue

            class_name, text = artifact.class_name, artifact.source_text
            if decision.is_rename:
                class_name = decision.new_name
                text = rename_declaration(text, artifact.class_name, class_name)
                self.log(f"[RENAME] {artifact.qualified_name} -> {class_name}")

            try:
                self.sink.write(artifact.package_name, class_name, f"{GENERATED_MARKER}\n{text}")
            except EmissionError as e:
                self.log(f"[ERROR] {e}")
                report.status = FAILED
                report.failure = GenerationFailure(artifact.kind.value, artifact.package_name, class_name, e)
                return report

            ref = ArtifactRef(artifact.kind, artifact.package_name, class_name)
            self.log(f"[WRITE] {ref.qualified_name}")
            report.written.append(ref)

        self.log(f"[INFO] Done: {len(report.written)} written, {len(report.skipped)} skipped")
        return report

    # ---------------- internals ----------------

    def _gate(
        self,
        result: ValidationResult,
        confirm_warnings: ConfirmWarningsFn,
        prior: Optional[ValidationResult] = None,
    ) -> Optional[GenerationReport]:
        seen = prior.merged(result) if prior is not None else result
        if not result.valid:
            for e in result.errors:
                self.log(f"[ERROR] {e}")
            return GenerationReport(INVALID, errors=result.errors, warnings=seen.warnings)
        if result.has_warnings:
            for w in result.warnings:
                self.log(f"[WARN] {w}")
            if not confirm_warnings(result.warnings):
                self.log("[INFO] Cancelled: warnings not accepted")
                return GenerationReport(CANCELLED, warnings=seen.warnings)
        return None

    def _plan(
        self,
        artifacts: List[GeneratedArtifact],
        policy: GenerationPolicy,
    ) -> Optional[List[Tuple[GeneratedArtifact, ConflictDecision]]]:
        existing = self.sink.existing()
        context = DecisionContext.pinned(Choice.WRITE_ALL) if policy.overwrite_existing else DecisionContext()
        plan: List[Tuple[GeneratedArtifact, ConflictDecision]] = []
        for artifact in artifacts:
            decision = self.resolver.resolve(artifact.package_name, artifact.class_name, existing, context)
            if context.cancelled:
                return None
            plan.append((artifact, decision))
        return plan

    @staticmethod
    def _ref(artifact: GeneratedArtifact) -> ArtifactRef:
        return ArtifactRef(artifact.kind, artifact.package_name, artifact.class_name)
