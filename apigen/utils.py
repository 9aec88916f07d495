from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

EXCLUDE_DIRS = {
    ".apigen",
    ".git", ".idea", ".vscode",
    "target", "build", "out", ".gradle",
    "node_modules", "__pycache__", ".mvn",
}
EXCLUDE_FILES = {".DS_Store"}

# ---------------- tiny utils ----------------

def read_text(pth: Path) -> str:
    return pth.read_text(encoding="utf-8", errors="replace")

def write_text(pth: Path, txt: str) -> None:
    pth.parent.mkdir(parents=True, exist_ok=True)
    pth.write_text(txt, encoding="utf-8", errors="replace")

def relpath(pth: Path, root: Path) -> str:
    try:
        return str(pth.relative_to(root))
    except ValueError:
        return str(pth)

def strip_quotes(s: str) -> str:
    return s.strip().strip('"').strip("'")

def to_pkg_dir(src_root: Path, pkg: str) -> Path:
    return src_root / Path(pkg.replace(".", "/")) if pkg else src_root

def camel(s: str) -> str:
    return s[:1].upper() + s[1:] if s else s

def lower_first(s: str) -> str:
    return s[:1].lower() + s[1:] if s else s

def pluralize(name: str) -> str:
    if name.endswith("y") and len(name) > 1 and name[-2].lower() not in "aeiou":
        return name[:-1] + "ies"
    if name.endswith("s"):
        return name + "es"
    return name + "s"

def route_name(entity_name: str) -> str:
    return pluralize(entity_name).lower()

def join_package(*parts: str) -> str:
    return ".".join(p.strip(".") for p in parts if p and p.strip("."))

def iter_java_files(root: Path) -> List[Path]:
    out: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDE_DIRS]
        for fn in filenames:
            if fn in EXCLUDE_FILES:
                continue
            pth = Path(dirpath) / fn
            if pth.suffix.lower() == ".java":
                out.append(pth)
    return sorted(out)

def render_import_block(items: Iterable[str], extra: Optional[List[str]] = None) -> str:
    """Render Java import lines.

    Each item may be a fully qualified name or an ``import ...`` line with or
    without the trailing semicolon. Output is sorted and de-duplicated.
    """
    out: Set[str] = set()

    def add_one(raw: str) -> None:
        s = str(raw).strip() if raw is not None else ""
        s = re.sub(r"^\s*import\s+", "", s).rstrip(";").strip()
        if s:
            out.add(f"import {s};")

    for x in items or ():
        add_one(x)
    for e in extra or ():
        add_one(e)

    return ("\n".join(sorted(out)) + "\n") if out else ""
