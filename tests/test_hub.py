"""Integration tests for the generation hub."""

import pytest

from apigen.conflicts import Choice, always
from apigen.dependencies import LOMBOK
from apigen.errors import NotAnEntity
from apigen.generators import GENERATED_MARKER
from apigen.hub import CANCELLED, FAILED, INVALID, OK, ApiGenHub
from apigen.model import INTERFACE, ArtifactKind
from apigen.policy import GenerationPolicy
from apigen.sink import MemorySink

from builders import entity, fld, id_field


# ── Fixtures ──────────────────────────────────────────────────────────


ALL_CUSTOMER_ARTIFACTS = [
    ("com.acme.model.dto", "CustomerDto"),
    ("com.acme.model.mapper", "CustomerMapper"),
    ("com.acme.model.repository", "CustomerRepository"),
    ("com.acme.model.service", "CustomerService"),
    ("com.acme.model.controller", "CustomerController"),
]


@pytest.fixture
def lines():
    return []


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def make_hub(sink, lines):
    def make(**kw):
        kw.setdefault("on_line", lines.append)
        return ApiGenHub(kw.pop("sink", sink), **kw)
    return make


def accept(_):
    return True


def counting(choice):
    calls = []

    def oracle(package, class_name):
        calls.append(class_name)
        return choice

    oracle.calls = calls
    return oracle


# ── Happy path ────────────────────────────────────────────────────────


class TestRun:
    def test_writes_every_artifact(self, make_hub, sink, customer_class, policy, lines):
        report = make_hub().run(customer_class, policy)
        assert report.status == OK
        assert report.ok
        assert sink.writes == ALL_CUSTOMER_ARTIFACTS
        assert [r.kind for r in report.written] == [
            ArtifactKind.DTO,
            ArtifactKind.MAPPER,
            ArtifactKind.REPOSITORY,
            ArtifactKind.SERVICE,
            ArtifactKind.CONTROLLER,
        ]
        assert lines[0] == "[INFO] Entity: com.acme.model.Customer"
        assert "[WRITE] com.acme.model.dto.CustomerDto" in lines
        assert lines[-1] == "[INFO] Done: 5 written, 0 skipped"

    def test_marker_is_prepended(self, make_hub, sink, customer_class, policy):
        make_hub().run(customer_class, policy)
        text = sink.text("com.acme.model.dto", "CustomerDto")
        assert text.startswith(GENERATED_MARKER + "\npackage com.acme.model.dto;\n")

    def test_preview_writes_nothing(self, make_hub, sink, customer_model, policy):
        artifacts = make_hub().preview(customer_model, policy)
        assert len(artifacts) == 5
        assert sink.writes == []

    def test_disabled_artifacts(self, make_hub, sink, customer_class, policy):
        no_dto = policy.with_artifact(ArtifactKind.DTO, enabled=False)
        make_hub().run(customer_class, no_dto)
        assert [name for _, name in sink.writes] == ["CustomerRepository", "CustomerService", "CustomerController"]


# ── Validation gates ──────────────────────────────────────────────────


class TestGates:
    def test_invalid_entity_writes_nothing(self, make_hub, sink, policy):
        report = make_hub().run(entity("Broken", fld("name", "String")), policy)
        assert report.status == INVALID
        assert report.errors == ("Class Broken has no field annotated with @Id",)
        assert sink.writes == []

    def test_structurally_valid_non_class_is_rejected(self, make_hub, policy):
        with pytest.raises(NotAnEntity):
            make_hub().run(entity("Shape", id_field(), kind=INTERFACE), policy)

    def test_warnings_declined_by_default(self, make_hub, sink, policy):
        report = make_hub().run(entity("Note", id_field(), serializable=False), policy)
        assert report.status == CANCELLED
        assert report.warnings == ("Class Note does not implement java.io.Serializable",)
        assert sink.writes == []

    def test_warnings_accepted(self, make_hub, sink, policy):
        seen = []

        def confirm(warnings):
            seen.extend(warnings)
            return True

        report = make_hub().run(entity("Note", id_field(), serializable=False), policy, confirm_warnings=confirm)
        assert report.status == OK
        assert seen == ["Class Note does not implement java.io.Serializable"]
        assert report.warnings == tuple(seen)
        assert len(sink.writes) == 5

    def test_model_warning_is_gated(self, make_hub, sink, policy):
        cls = entity("Bag", id_field(), fld("items", "List"))
        assert make_hub().run(cls, policy).status == CANCELLED
        assert make_hub().run(cls, policy, confirm_warnings=accept).status == OK

    def test_missing_dependency_declined(self, make_hub, sink, customer_class, policy, lines):
        hub = make_hub(dependency_oracle=lambda feature: feature != LOMBOK)
        report = hub.run(customer_class, policy)
        assert report.status == CANCELLED
        assert report.missing_dependencies == (LOMBOK,)
        assert "[WARN] Missing dependency: Lombok" in lines
        assert sink.writes == []

    def test_missing_dependency_accepted(self, make_hub, sink, customer_class, policy):
        asked = []

        def confirm(deps):
            asked.append(deps.missing)
            return True

        hub = make_hub(dependency_oracle=lambda feature: feature != LOMBOK)
        report = hub.run(customer_class, policy, confirm_dependencies=confirm)
        assert report.status == OK
        assert asked == [(LOMBOK,)]
        assert report.missing_dependencies == (LOMBOK,)

    def test_unneeded_dependency_is_not_checked(self, make_hub, customer_class):
        asked = []

        def oracle(feature):
            asked.append(feature)
            return True

        make_hub(dependency_oracle=oracle).run(customer_class, GenerationPolicy(use_accessor_annotation_style=False))
        assert LOMBOK not in asked


# ── Conflicts ─────────────────────────────────────────────────────────


class TestConflicts:
    def test_default_skips_existing(self, make_hub, customer_class, policy):
        sink = MemorySink({("com.acme.model.dto", "CustomerDto"): "hand written"})
        report = make_hub(sink=sink).run(customer_class, policy)
        assert report.status == OK
        assert [r.class_name for r in report.skipped] == ["CustomerDto"]
        assert sink.text("com.acme.model.dto", "CustomerDto") == "hand written"
        assert len(report.written) == 4

    def test_rename_all_asks_once(self, make_hub, customer_class, policy):
        sink = MemorySink({key: "old" for key in ALL_CUSTOMER_ARTIFACTS})
        oracle = counting(Choice.RENAME_ALL)
        report = make_hub(sink=sink, decision_oracle=oracle).run(customer_class, policy)
        assert oracle.calls == ["CustomerDto"]
        assert [r.class_name for r in report.written] == [name + "2" for _, name in ALL_CUSTOMER_ARTIFACTS]
        assert "public class CustomerDto2 {" in sink.text("com.acme.model.dto", "CustomerDto2")
        assert sink.text("com.acme.model.dto", "CustomerDto") == "old"

    def test_overwrite_existing_never_asks(self, make_hub, customer_class):
        sink = MemorySink({key: "old" for key in ALL_CUSTOMER_ARTIFACTS})
        oracle = counting(Choice.SKIP)
        report = make_hub(sink=sink, decision_oracle=oracle).run(customer_class, GenerationPolicy(overwrite_existing=True))
        assert oracle.calls == []
        assert len(report.written) == 5
        assert sink.text("com.acme.model.dto", "CustomerDto").startswith(GENERATED_MARKER)

    def test_cancel_writes_nothing(self, make_hub, customer_class, policy):
        sink = MemorySink({("com.acme.model.service", "CustomerService"): "old"})
        report = make_hub(sink=sink, decision_oracle=lambda package, name: None).run(customer_class, policy)
        assert report.status == CANCELLED
        assert sink.writes == []
        assert len(report.skipped) == 5

    def test_new_batch_asks_again(self, make_hub, customer_class, policy):
        sink = MemorySink({("com.acme.model.dto", "CustomerDto"): "old"})
        oracle = counting(Choice.SKIP_ALL)
        hub = make_hub(sink=sink, decision_oracle=oracle)
        hub.run(customer_class, policy)
        hub.run(customer_class, policy)
        assert oracle.calls[:2] == ["CustomerDto", "CustomerDto"]


# ── Failures ──────────────────────────────────────────────────────────


class TestFailures:
    def test_stops_at_first_failed_write(self, make_hub, customer_class, policy, lines):
        sink = MemorySink(fail_on=["CustomerRepository"])
        report = make_hub(sink=sink).run(customer_class, policy)
        assert report.status == FAILED
        assert not report.ok
        assert [name for _, name in sink.writes] == ["CustomerDto", "CustomerMapper"]
        assert report.failure.class_name == "CustomerRepository"
        assert report.failure.kind == "Repository"
        assert report.failure.cause.file_name == "CustomerRepository.java"
        assert any(line.startswith("[ERROR]") for line in lines)
        assert not any(line.startswith("[INFO] Done") for line in lines)
