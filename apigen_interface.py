#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
apigen unified interface.

Run one interface to:
- list JPA entities found in a project
- preview generated sources
- generate DTO / Mapper / Repository / Service / Controller
- report missing build dependencies
"""
from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.syntax import Syntax
from rich.table import Table

from apigen import messages
from apigen.analyzer import EntityAnalyzer
from apigen.conflicts import Choice, always
from apigen.dependencies import (
    BuildFileOracle,
    DependencyReport,
    check_dependencies,
    gradle_snippet,
    maven_snippet,
)
from apigen.errors import ApiGenError, ConfigError, NotAnEntity
from apigen.generators import GENERATED_MARKER, generate_all
from apigen.hub import INVALID, ApiGenHub, GenerationReport
from apigen.model import ArtifactKind, ClassDescription
from apigen.policy import GenerationPolicy, config_path, load_policy
from apigen.sink import FileSystemSink
from apigen.source import SourceIndex, load_sources
from apigen.utils import relpath

console = Console()

LEVEL_STYLES = {
    "[INFO]": "cyan",
    "[WARN]": "yellow",
    "[ERROR]": "bold red",
    "[SKIP]": "dim",
    "[WRITE]": "green",
    "[RENAME]": "magenta",
}

CONFLICT_ANSWERS = {
    "write": Choice.WRITE,
    "skip": Choice.SKIP,
    "rename": Choice.RENAME,
    "write-all": Choice.WRITE_ALL,
    "skip-all": Choice.SKIP_ALL,
    "rename-all": Choice.RENAME_ALL,
}

# ---------------- tiny utils ----------------

def p(msg: str) -> None:
    console.print(msg)


def _log(line: str) -> None:
    style = next((s for tag, s in LEVEL_STYLES.items() if line.startswith(tag)), None)
    console.print(line, style=style, markup=False, highlight=False)


def _split_names(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _resolve_root(raw: str) -> Optional[Path]:
    root = Path(raw).expanduser().resolve()
    if not root.exists() or not root.is_dir():
        _log(f"[ERROR] Project root not found: {root}")
        return None
    return root


def _source_root(root: Path, override: Optional[str]) -> Path:
    if override:
        return Path(override).expanduser().resolve()
    cand = root / "src" / "main" / "java"
    return cand if cand.is_dir() else root


def _show_message(msg: messages.Message) -> None:
    style = {"info": "cyan", "warning": "yellow", "error": "red"}.get(msg.level, "white")
    body = msg.description
    if msg.suggestions:
        body += "\n\n" + "\n".join(f"* {s}" for s in msg.suggestions)
    console.print(Panel(body, title=f"{msg.title} ({msg.code})", border_style=style))


# ---------------- policy ----------------

def _policy_from_args(args: argparse.Namespace, root: Path) -> GenerationPolicy:
    cfg = Path(args.config).expanduser() if args.config else config_path(root)
    if args.config and not cfg.exists():
        raise ConfigError(f"config file not found: {cfg}")
    policy = load_policy(cfg)

    if args.base_package is not None:
        policy = replace(policy, base_package=args.base_package)
    if args.api_prefix is not None:
        policy = replace(policy, api_prefix=args.api_prefix)
    if args.no_lombok:
        policy = replace(policy, use_accessor_annotation_style=False)
    if args.no_query_methods:
        policy = replace(policy, repository_query_methods=False)
    if getattr(args, "overwrite", False):
        policy = replace(policy, overwrite_existing=True)

    by_name = {k.value.lower(): k for k in ArtifactKind}
    for name in _split_names(args.skip):
        kind = by_name.get(name.lower())
        if kind is None:
            raise ConfigError(f"unknown artifact in --skip: {name} (expected: {', '.join(sorted(by_name))})")
        policy = policy.with_artifact(kind, enabled=False)
    return policy


# ---------------- loading ----------------

def _load(root: Path) -> SourceIndex:
    index = load_sources(root)
    for failure in index.failures:
        _log(f"[WARN] {failure}")
    return index


def show_entities(entities: List[ClassDescription], root: Path) -> None:
    analyzer = EntityAnalyzer()
    t = Table(title="Entities found (@Entity)")
    t.add_column("#", justify="right")
    t.add_column("Entity")
    t.add_column("Package")
    t.add_column("ID")
    t.add_column("Fields", justify="right")
    t.add_column("File")
    for i, cls in enumerate(entities, start=1):
        id_col, n_fields = "-", "-"
        if analyzer.is_eligible(cls):
            model = analyzer.analyze(cls)
            n_fields = str(len(model.fields))
            if model.id_field is not None:
                id_col = f"{model.id_field.name}:{model.id_type.render()}"
        file_col = relpath(cls.file_path, root) if cls.file_path else ""
        t.add_row(str(i), cls.name, cls.package, id_col, n_fields, file_col)
    console.print(t)


def _select(index: SourceIndex, names: Sequence[str], select_all: bool) -> Optional[List[ClassDescription]]:
    entities = index.entities()
    if select_all or not names:
        return entities
    out: List[ClassDescription] = []
    for name in names:
        cls = index.find(name)
        if cls is None:
            _log(f"[ERROR] Entity not found: {name}")
            return None
        out.append(cls)
    return out


# ---------------- prompts ----------------

def _conflict_prompt(sink: FileSystemSink):
    def ask(package: str, class_name: str) -> Optional[Choice]:
        origin = " (generated earlier)" if sink.is_generated(package, class_name) else ""
        p(f"\n[yellow]{package}.{class_name}[/] already exists{origin}.")
        answer = Prompt.ask(
            "Action",
            choices=[*CONFLICT_ANSWERS, "cancel"],
            default="skip",
            console=console,
        )
        return CONFLICT_ANSWERS.get(answer)
    return ask


def _confirm_warnings(assume_yes: bool):
    def confirm(warnings: Sequence[str]) -> bool:
        _show_message(messages.entity_warnings(warnings))
        return assume_yes or Confirm.ask("Continue despite warnings?", default=False, console=console)
    return confirm


def _confirm_dependencies(assume_yes: bool, kts: bool):
    def confirm(report: DependencyReport) -> bool:
        gradle = gradle_snippet(report.missing, kts=kts)
        _show_message(messages.missing_dependencies(report.missing, maven_snippet(report.missing), gradle))
        return assume_yes or Confirm.ask("Generate anyway?", default=False, console=console)
    return confirm


# ---------------- commands ----------------

def run_entities(args: argparse.Namespace) -> int:
    root = _resolve_root(args.root)
    if root is None:
        return 2
    entities = _load(root).entities()
    if not entities:
        _log("[WARN] No @Entity found.")
        return 1
    show_entities(entities, root)
    return 0


def run_preview(args: argparse.Namespace) -> int:
    root = _resolve_root(args.root)
    if root is None:
        return 2
    policy = _policy_from_args(args, root)
    index = _load(root)
    cls = index.find(args.entity)
    if cls is None:
        _log(f"[ERROR] Entity not found: {args.entity}")
        return 2

    model = EntityAnalyzer().analyze(cls)
    for artifact in generate_all(model, policy):
        console.rule(f"{artifact.kind.value}: {artifact.relative_path}")
        console.print(Syntax(f"{GENERATED_MARKER}\n{artifact.source_text}", "java", theme="monokai"))
    return 0


def run_generate(args: argparse.Namespace) -> int:
    root = _resolve_root(args.root)
    if root is None:
        return 2
    policy = _policy_from_args(args, root)
    index = _load(root)
    selected = _select(index, _split_names(args.entities), args.all)
    if selected is None:
        return 2
    if not selected:
        _log("[WARN] Nothing selected.")
        return 1

    build_oracle = BuildFileOracle.for_root(root)
    sink = FileSystemSink(_source_root(root, args.source_root), dry_run=args.dry_run)
    if args.on_conflict == "ask":
        oracle = _conflict_prompt(sink)
    else:
        oracle = always({"write": Choice.WRITE_ALL, "skip": Choice.SKIP_ALL, "rename": Choice.RENAME_ALL}[args.on_conflict])
    hub = ApiGenHub(sink, dependency_oracle=build_oracle, decision_oracle=oracle, on_line=_log)

    p(f"\nSource root: {sink.source_root}")
    p("Selected entities: " + ", ".join(c.name for c in selected))

    rc = 0
    total = 0
    for cls in selected:
        p("")
        report = hub.run(
            cls,
            policy,
            confirm_warnings=_confirm_warnings(args.yes),
            confirm_dependencies=_confirm_dependencies(args.yes, build_oracle.build_kind == "gradle_kts"),
        )
        total += len(report.written)
        rc = max(rc, _report_outcome(report))

    if rc == 0:
        _show_message(messages.generation_success(total))
    if args.dry_run:
        p("[dim]Dry run: nothing was written.[/]")
    return rc


def _report_outcome(report: GenerationReport) -> int:
    if report.ok:
        return 0
    if report.status == INVALID:
        _show_message(messages.invalid_entity(report.errors))
    elif report.failure is not None:
        cause = report.failure.cause
        detail = getattr(cause, "detail", str(cause))
        _show_message(messages.file_write_error(detail, f"{report.failure.class_name}.java"))
    return 1


def run_deps(args: argparse.Namespace) -> int:
    root = _resolve_root(args.root)
    if root is None:
        return 2
    policy = _policy_from_args(args, root)
    oracle = BuildFileOracle.for_root(root)
    report = check_dependencies(oracle, policy)

    t = Table(title=f"Dependencies ({oracle.build_kind})")
    t.add_column("Feature")
    t.add_column("Status")
    for feature in report.checked:
        ok = feature not in report.missing
        t.add_row(feature, "[green]present[/]" if ok else "[red]missing[/]")
    console.print(t)

    if report.ok:
        return 0
    fmt = "maven" if args.maven else "kts" if args.kts else "gradle" if args.gradle else None
    if fmt is None:
        fmt = {"gradle_kts": "kts", "gradle_groovy": "gradle"}.get(oracle.build_kind, "maven")
    if fmt == "maven":
        console.print(Syntax(maven_snippet(report.missing), "xml"))
    else:
        console.print(Syntax(gradle_snippet(report.missing, kts=(fmt == "kts")), "kotlin" if fmt == "kts" else "groovy"))
    return 1


# ---------------- parser ----------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="apigen: Spring REST layers from JPA entities")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_policy_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", help="Policy JSON (default: root/.apigen/config.json)")
        p.add_argument("--base-package", default=None, help="Base package (default: the entity's package)")
        p.add_argument("--api-prefix", default=None, help="Controller route prefix (e.g. /api/v1)")
        p.add_argument("--no-lombok", action="store_true", help="Emit explicit getters/setters in DTOs")
        p.add_argument("--no-query-methods", action="store_true", help="Repository without findBy methods")
        p.add_argument("--skip", default="", help="Comma-separated artifacts to disable (dto,mapper,...)")

    entities = sub.add_parser("entities", help="List JPA entities")
    entities.add_argument("--root", required=True, help="Java project root")

    preview = sub.add_parser("preview", help="Print generated sources for one entity")
    preview.add_argument("--root", required=True, help="Java project root")
    preview.add_argument("--entity", required=True, help="Entity name (simple or qualified)")
    add_policy_flags(preview)

    gen = sub.add_parser("generate", help="Generate and write artifacts")
    gen.add_argument("--root", required=True, help="Java project root")
    gen.add_argument("--entities", default="", help="Comma-separated entity names (default: all)")
    gen.add_argument("--all", action="store_true", help="Select all entities")
    add_policy_flags(gen)
    gen.add_argument("--source-root", default=None, help="Output source root (default: root/src/main/java)")
    gen.add_argument("--overwrite", action="store_true", help="Replace existing files without asking")
    gen.add_argument("--on-conflict", default="ask", choices=["ask", "write", "skip", "rename"])
    gen.add_argument("--yes", action="store_true", help="Accept warnings and missing dependencies")
    gen.add_argument("--dry-run", action="store_true", help="Do not write files")

    deps = sub.add_parser("deps", help="Report missing build dependencies")
    deps.add_argument("--root", required=True, help="Java project root")
    add_policy_flags(deps)
    fmt = deps.add_mutually_exclusive_group()
    fmt.add_argument("--maven", action="store_true", help="Maven snippet")
    fmt.add_argument("--gradle", action="store_true", help="Gradle (Groovy) snippet")
    fmt.add_argument("--kts", action="store_true", help="Gradle Kotlin DSL snippet")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    commands = {
        "entities": run_entities,
        "preview": run_preview,
        "generate": run_generate,
        "deps": run_deps,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args)
    except ConfigError as e:
        _log(f"[ERROR] {e}")
        return 2
    except NotAnEntity as e:
        _log(f"[ERROR] {e}")
        return 1
    except ApiGenError as e:
        _log(f"[ERROR] {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
