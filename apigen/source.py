"""
Java source loading (javalang AST -> ClassDescription).

Two passes: every file is parsed first so that names declared anywhere in the
scan are known, then each top-level type is described with its annotation,
field and supertype names qualified through the file's imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import javalang
from javalang.parser import JavaSyntaxError
from javalang.tokenizer import LexerError

from .analyzer import ENTITY, PERSISTENCE_NAMESPACES, has_marker
from .errors import SourceParseError
from .model import (
    ANNOTATION,
    CLASS,
    ENUM,
    INTERFACE,
    AnnotationUsage,
    ClassDescription,
    FieldDescription,
)
from .utils import iter_java_files, read_text, strip_quotes

# ---------------- AST helpers ----------------

def _kind_of(decl) -> str:
    if isinstance(decl, javalang.tree.InterfaceDeclaration):
        return INTERFACE
    if isinstance(decl, javalang.tree.EnumDeclaration):
        return ENUM
    if isinstance(decl, javalang.tree.AnnotationDeclaration):
        return ANNOTATION
    return CLASS


def _dims(node) -> int:
    return len(getattr(node, "dimensions", None) or [])


def _element_to_str(value) -> str:
    if isinstance(value, javalang.tree.Literal):
        return strip_quotes(str(value.value))
    if isinstance(value, javalang.tree.MemberReference):
        return f"{value.qualifier}.{value.member}" if value.qualifier else value.member
    if isinstance(value, javalang.tree.ElementArrayValue):
        return "{" + ", ".join(_element_to_str(v) for v in value.values or []) + "}"
    if isinstance(value, javalang.tree.Annotation):
        return "@" + value.name
    return str(getattr(value, "value", value))


def _extract_ann_kv(ann) -> Dict[str, str]:
    el = getattr(ann, "element", None)
    if el is None:
        return {}
    if isinstance(el, list):
        return {e.name: _element_to_str(e.value) for e in el if hasattr(e, "name")}
    return {"value": _element_to_str(el)}


@dataclass
class _Unit:
    """One parsed compilation unit."""

    path: Optional[Path]
    package: str
    explicit: Dict[str, str]
    wildcards: List[str]
    types: list
    nested: Dict[str, str] = field(default_factory=dict)


class _Scope:
    """Name qualification for one compilation unit."""

    def __init__(self, unit: _Unit, declared: Set[str]) -> None:
        self.unit = unit
        self.declared = declared

    def qualify(self, name: str, annotation: bool = False) -> str:
        if "." in name:
            head, rest = name.split(".", 1)
            if head in self.unit.explicit:
                return f"{self.unit.explicit[head]}.{rest}"
            return name
        if name in self.unit.explicit:
            return self.unit.explicit[name]
        if name in self.unit.nested:
            return self.unit.nested[name]
        local = f"{self.unit.package}.{name}" if self.unit.package else name
        if local in self.declared:
            return local
        for pkg in self.unit.wildcards:
            cand = f"{pkg}.{name}"
            if cand in self.declared or (annotation and pkg in PERSISTENCE_NAMESPACES):
                return cand
        return name

    def annotation(self, ann) -> AnnotationUsage:
        return AnnotationUsage(self.qualify(ann.name, annotation=True), _extract_ann_kv(ann))

    def type_to_str(self, t, extra_dims: int = 0) -> str:
        if t is None:
            return "void"
        if isinstance(t, javalang.tree.BasicType):
            return t.name + "[]" * (_dims(t) + extra_dims)

        parts: List[str] = []
        args = None
        cur = t
        while cur is not None:
            parts.append(cur.name)
            if cur.arguments:
                args = cur.arguments
            cur = getattr(cur, "sub_type", None)

        out = self.qualify(".".join(parts))
        if args:
            out += "<" + ", ".join(self._type_arg(a) for a in args) + ">"
        return out + "[]" * (_dims(t) + extra_dims)

    def _type_arg(self, arg) -> str:
        pattern = getattr(arg, "pattern_type", None)
        inner = self.type_to_str(arg.type) if getattr(arg, "type", None) is not None else ""
        if pattern == "?" or (pattern is None and not inner):
            return "?"
        if pattern in ("extends", "super"):
            return f"? {pattern} {inner}"
        return inner

    def head_name(self, t) -> str:
        parts: List[str] = []
        cur = t
        while cur is not None:
            parts.append(cur.name)
            cur = getattr(cur, "sub_type", None)
        return self.qualify(".".join(parts))


def _parse_unit(text: str, path: Optional[Path]) -> _Unit:
    try:
        tree = javalang.parse.parse(text)
    except (JavaSyntaxError, LexerError) as e:
        detail = getattr(e, "description", None) or str(e) or type(e).__name__
        raise SourceParseError(path, detail) from e

    explicit: Dict[str, str] = {}
    wildcards: List[str] = []
    for imp in tree.imports or []:
        if imp.static:
            continue
        if imp.wildcard:
            wildcards.append(imp.path)
        else:
            explicit[imp.path.rsplit(".", 1)[-1]] = imp.path

    package = tree.package.name if tree.package else ""
    unit = _Unit(path, package, explicit, wildcards, list(tree.types or []))

    for decl in unit.types:
        outer = f"{package}.{decl.name}" if package else decl.name
        for member in decl.body if isinstance(decl.body, list) else []:
            if isinstance(member, javalang.tree.TypeDeclaration):
                unit.nested[member.name] = f"{outer}.{member.name}"
    return unit


def _qualified(unit: _Unit, decl) -> str:
    return f"{unit.package}.{decl.name}" if unit.package else decl.name


# ---------------- index ----------------

@dataclass
class SourceIndex:
    classes: List[ClassDescription] = field(default_factory=list)
    failures: List[SourceParseError] = field(default_factory=list)

    def find(self, name: str) -> Optional[ClassDescription]:
        for cls in self.classes:
            if cls.qualified_name == name:
                return cls
        for cls in self.classes:
            if cls.name == name:
                return cls
        return None

    def entities(self) -> List[ClassDescription]:
        found = [c for c in self.classes if c.kind == CLASS and has_marker(c.annotations, ENTITY)]
        return sorted(found, key=lambda c: (c.package, c.name))

    def __len__(self) -> int:
        return len(self.classes)


class _Builder:
    def __init__(self, units: List[_Unit]) -> None:
        self.units = units
        self.decls: Dict[str, Tuple[_Unit, object]] = {}
        self.enums: Set[str] = set()
        for unit in units:
            for decl in unit.types:
                qn = _qualified(unit, decl)
                self.decls[qn] = (unit, decl)
                if isinstance(decl, javalang.tree.EnumDeclaration):
                    self.enums.add(qn)
            for nested_qn in unit.nested.values():
                self.decls.setdefault(nested_qn, (unit, None))
        for unit in units:
            for decl in unit.types:
                for member in decl.body if isinstance(decl.body, list) else []:
                    if isinstance(member, javalang.tree.EnumDeclaration):
                        self.enums.add(unit.nested[member.name])
        self.declared = set(self.decls)
        self.done: Dict[str, ClassDescription] = {}
        self.in_progress: Set[str] = set()

    def build_all(self) -> List[ClassDescription]:
        out: List[ClassDescription] = []
        for unit in self.units:
            for decl in unit.types:
                out.append(self.describe(unit, decl))
        return out

    def describe(self, unit: _Unit, decl) -> ClassDescription:
        qn = _qualified(unit, decl)
        if qn in self.done:
            return self.done[qn]
        self.in_progress.add(qn)
        scope = _Scope(unit, self.declared)
        kind = _kind_of(decl)

        superclass: Optional[ClassDescription] = None
        interfaces: List[str] = []
        if kind == CLASS:
            if decl.extends is not None:
                superclass = self._lookup(scope.head_name(decl.extends))
            interfaces = [scope.head_name(i) for i in decl.implements or []]
        elif kind == INTERFACE:
            interfaces = [scope.head_name(i) for i in decl.extends or []]
        elif kind == ENUM:
            interfaces = [scope.head_name(i) for i in decl.implements or []]

        fields: List[FieldDescription] = []
        arities: Tuple[int, ...] = ()
        if kind == CLASS:
            for node in decl.fields:
                anns = tuple(scope.annotation(a) for a in node.annotations or [])
                mods = frozenset(node.modifiers or ())
                for d in node.declarators:
                    type_name = scope.type_to_str(node.type, _dims(d))
                    head = type_name.split("<", 1)[0].rstrip("[]")
                    fields.append(FieldDescription(
                        name=d.name,
                        type_name=type_name,
                        modifiers=mods,
                        annotations=anns,
                        type_is_enum=head in self.enums,
                    ))
            arities = tuple(len(c.parameters or []) for c in decl.constructors)

        desc = ClassDescription(
            name=decl.name,
            package=unit.package,
            kind=kind,
            modifiers=frozenset(decl.modifiers or ()),
            annotations=tuple(scope.annotation(a) for a in decl.annotations or []),
            fields=tuple(fields),
            interfaces=tuple(interfaces),
            constructor_arities=arities,
            superclass=superclass,
            file_path=unit.path,
        )
        self.in_progress.discard(qn)
        self.done[qn] = desc
        return desc

    def _lookup(self, qn: str) -> Optional[ClassDescription]:
        if qn in self.in_progress:
            return None  # inheritance cycle
        found = self.decls.get(qn)
        if found is None or found[1] is None:
            return None
        unit, decl = found
        return self.describe(unit, decl)


# ---------------- public API ----------------

def parse_source(text: str, file_path: Optional[Path] = None) -> List[ClassDescription]:
    """Describe every top-level type declared in one Java source text."""
    return _Builder([_parse_unit(text, file_path)]).build_all()


def load_sources(root_or_files: Union[Path, str, Iterable[Path]]) -> SourceIndex:
    if isinstance(root_or_files, (str, Path)):
        root = Path(root_or_files)
        files = iter_java_files(root) if root.is_dir() else [root]
    else:
        files = [Path(f) for f in root_or_files]

    index = SourceIndex()
    units: List[_Unit] = []
    for f in files:
        try:
            units.append(_parse_unit(read_text(f), f))
        except SourceParseError as e:
            index.failures.append(e)

    index.classes = _Builder(units).build_all()
    return index
