"""
Canonical type resolution.

Maps Java source type names (as written in an entity) to ``CanonicalType``
descriptors used by every generator. Resolution never fails: anything outside
the finite table becomes an opaque reference type.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Set, Tuple

DEFAULT_NAMESPACE = "java.lang"
COLLECTION_NAMESPACE = "java.util"

# kinds
PRIMITIVE = "primitive"
BOXED = "boxed"
STRING = "string"
TEMPORAL = "temporal"
BIG_NUMBER = "big_number"
UUID_KIND = "uuid"
REFERENCE = "reference"
COLLECTION = "collection"

PRIMITIVE_TO_WRAPPER = {
    "int": "Integer",
    "long": "Long",
    "double": "Double",
    "float": "Float",
    "short": "Short",
    "byte": "Byte",
    "boolean": "Boolean",
    "char": "Character",
}

COLLECTION_KINDS = {
    "List", "ArrayList", "LinkedList",
    "Set", "HashSet", "LinkedHashSet", "TreeSet", "SortedSet",
    "Collection",
    "Map", "HashMap", "LinkedHashMap", "TreeMap", "SortedMap",
}


@dataclass(frozen=True)
class CanonicalType:
    kind: str
    name: str
    namespace: str = ""
    arguments: Tuple["CanonicalType", ...] = ()
    dimensions: int = 0

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def is_primitive(self) -> bool:
        return self.kind == PRIMITIVE and not self.dimensions

    @property
    def is_string(self) -> bool:
        return self.kind == STRING and not self.dimensions

    def boxed(self) -> "CanonicalType":
        if self.is_primitive:
            return TYPE_TABLE[PRIMITIVE_TO_WRAPPER[self.name]]
        return self

    def render(self) -> str:
        out = self.name
        if self.arguments:
            out += "<" + ", ".join(a.render() for a in self.arguments) + ">"
        return out + "[]" * self.dimensions

    def imports(self) -> Set[str]:
        out: Set[str] = set()
        if self.namespace and self.namespace != DEFAULT_NAMESPACE and self.kind != PRIMITIVE:
            out.add(self.qualified_name)
        for arg in self.arguments:
            out |= arg.imports()
        return out

    def __str__(self) -> str:
        return self.render()


def _build_type_table() -> Dict[str, CanonicalType]:
    table: Dict[str, CanonicalType] = {}

    def add(kind: str, namespace: str, *names: str) -> None:
        for n in names:
            t = CanonicalType(kind, n, namespace)
            table[n] = t
            if namespace:
                table[f"{namespace}.{n}"] = t

    add(PRIMITIVE, "", *PRIMITIVE_TO_WRAPPER.keys())
    add(BOXED, DEFAULT_NAMESPACE, *PRIMITIVE_TO_WRAPPER.values())
    add(STRING, DEFAULT_NAMESPACE, "String")
    add(BIG_NUMBER, "java.math", "BigDecimal", "BigInteger")
    add(TEMPORAL, "java.time", "LocalDate", "LocalTime", "LocalDateTime",
        "ZonedDateTime", "OffsetDateTime", "Instant")
    add(TEMPORAL, "java.util", "Date")
    add(UUID_KIND, "java.util", "UUID")
    return table


TYPE_TABLE: Dict[str, CanonicalType] = _build_type_table()

BOXED_LONG = TYPE_TABLE["Long"]
OBJECT = CanonicalType(REFERENCE, "Object", DEFAULT_NAMESPACE)


def split_type(type_name: str) -> Tuple[str, List[str], int]:
    """Split ``Map<String, List<X>>[]`` into head, top-level arguments and array rank."""
    t = type_name.strip()
    dims = 0
    while t.endswith("[]"):
        t = t[:-2].rstrip()
        dims += 1
    if "<" not in t or not t.endswith(">"):
        return t, [], dims

    head, rest = t.split("<", 1)
    inner = rest[:-1]
    args: List[str] = []
    depth = 0
    cur: List[str] = []
    for ch in inner:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "," and depth == 0:
            args.append("".join(cur).strip())
            cur = []
            continue
        cur.append(ch)
    last = "".join(cur).strip()
    if last:
        args.append(last)
    return head.strip(), args, dims


class TypeResolver:
    def __init__(self, table: Optional[Dict[str, CanonicalType]] = None) -> None:
        self.table = dict(table if table is not None else TYPE_TABLE)

    def resolve(self, type_name: str) -> CanonicalType:
        t = type_name.strip()
        if t.startswith("?"):
            bound = t[1:].strip()
            for kw in ("extends", "super"):
                if bound.startswith(kw + " "):
                    return self.resolve(bound[len(kw):])
            return OBJECT

        head, args, dims = split_type(t)
        base = self._resolve_head(head)
        if args:
            base = replace(base, arguments=tuple(self.resolve(a) for a in args))
        if dims:
            base = replace(base, dimensions=dims)
        return base

    def _resolve_head(self, head: str) -> CanonicalType:
        found = self.table.get(head)
        if found is not None:
            return found
        if self._collection_head(head):
            return CanonicalType(COLLECTION, head.rsplit(".", 1)[-1], COLLECTION_NAMESPACE)
        if "." in head:
            namespace, simple = head.rsplit(".", 1)
            return CanonicalType(REFERENCE, simple, namespace)
        return CanonicalType(REFERENCE, head, DEFAULT_NAMESPACE)

    @staticmethod
    def _collection_head(head: str) -> Optional[str]:
        if head in COLLECTION_KINDS:
            return head
        if head.startswith(COLLECTION_NAMESPACE + "."):
            simple = head[len(COLLECTION_NAMESPACE) + 1:]
            if simple in COLLECTION_KINDS:
                return simple
        return None

    def collection_kind(self, type_name: str) -> Optional[str]:
        head, _, dims = split_type(type_name)
        if dims:
            return None
        return self._collection_head(head)

    def is_collection(self, type_name: str) -> bool:
        return self.collection_kind(type_name) is not None

    def element_type(self, type_name: str) -> Optional[CanonicalType]:
        """Last type argument of a collection (the value type for maps)."""
        if not self.is_collection(type_name):
            return None
        _, args, _ = split_type(type_name)
        if not args:
            return None
        return self.resolve(args[-1])
