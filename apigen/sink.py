from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

from .errors import EmissionError
from .generators import GENERATED_MARKER
from .utils import iter_java_files, read_text, relpath, to_pkg_dir, write_text

ArtifactId = Tuple[str, str]


class ArtifactSink(Protocol):
    def existing(self) -> Set[ArtifactId]:
        ...

    def write(self, package_name: str, class_name: str, source_text: str) -> None:
        """Persist one artifact or raise ``EmissionError``."""
        ...


# ---------------- filesystem ----------------

class FileSystemSink:
    """Writes ``<source_root>/<package path>/<Class>.java``."""

    def __init__(self, source_root: Path, dry_run: bool = False) -> None:
        self.source_root = source_root
        self.dry_run = dry_run
        self.written: List[str] = []

    def path_for(self, package_name: str, class_name: str) -> Path:
        return to_pkg_dir(self.source_root, package_name) / f"{class_name}.java"

    def existing(self) -> Set[ArtifactId]:
        out: Set[ArtifactId] = set()
        if not self.source_root.exists():
            return out
        for f in iter_java_files(self.source_root):
            rel = f.relative_to(self.source_root)
            out.add((".".join(rel.parent.parts), f.stem))
        return out

    def is_generated(self, package_name: str, class_name: str) -> bool:
        path = self.path_for(package_name, class_name)
        try:
            return path.exists() and GENERATED_MARKER in read_text(path)
        except OSError:
            return False

    def write(self, package_name: str, class_name: str, source_text: str) -> None:
        path = self.path_for(package_name, class_name)
        content = source_text.rstrip() + "\n"
        rel = relpath(path, self.source_root)
        if self.dry_run:
            self.written.append(rel)
            return
        try:
            write_text(path, content)
        except OSError as e:
            raise EmissionError(package_name, class_name, e.strerror or str(e)) from e
        self.written.append(rel)


# ---------------- in-memory ----------------

class MemorySink:
    """Keeps files in a dict; ``fail_on`` names (simple or qualified) make writes fail."""

    def __init__(
        self,
        files: Optional[Dict[ArtifactId, str]] = None,
        fail_on: Iterable[str] = (),
    ) -> None:
        self.files: Dict[ArtifactId, str] = dict(files or {})
        self.fail_on = set(fail_on)
        self.writes: List[ArtifactId] = []

    def existing(self) -> Set[ArtifactId]:
        return set(self.files)

    def write(self, package_name: str, class_name: str, source_text: str) -> None:
        qualified = f"{package_name}.{class_name}" if package_name else class_name
        if class_name in self.fail_on or qualified in self.fail_on:
            raise EmissionError(package_name, class_name, "simulated write failure")
        self.files[(package_name, class_name)] = source_text
        self.writes.append((package_name, class_name))

    def text(self, package_name: str, class_name: str) -> str:
        return self.files[(package_name, class_name)]
