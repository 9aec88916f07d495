"""
Conflict resolution for one generation batch.

Per artifact: no collision -> write; a batch pin (set by an ``*_ALL`` answer)
-> the pinned action; otherwise ask the decision oracle. All batch state lives
in a ``DecisionContext`` that the caller creates per run and then drops.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Set, Tuple

from .errors import ApiGenError

ArtifactId = Tuple[str, str]  # (package, class name)

MAX_RENAME_ATTEMPTS = 1000


class Choice(str, Enum):
    WRITE = "write"
    SKIP = "skip"
    RENAME = "rename"
    WRITE_ALL = "write_all"
    SKIP_ALL = "skip_all"
    RENAME_ALL = "rename_all"

    @property
    def pins(self) -> bool:
        return self in (Choice.WRITE_ALL, Choice.SKIP_ALL, Choice.RENAME_ALL)

    @property
    def action(self) -> "Choice":
        return {
            Choice.WRITE_ALL: Choice.WRITE,
            Choice.SKIP_ALL: Choice.SKIP,
            Choice.RENAME_ALL: Choice.RENAME,
        }.get(self, self)


# Returns None when the user cancels.
DecisionOracle = Callable[[str, str], Optional[Choice]]
AlternativeName = Callable[[str], str]

WRITE = "write"
SKIP = "skip"
RENAME = "rename"


@dataclass(frozen=True)
class ConflictDecision:
    action: str
    new_name: Optional[str] = None

    @classmethod
    def write(cls) -> "ConflictDecision":
        return cls(WRITE)

    @classmethod
    def skip(cls) -> "ConflictDecision":
        return cls(SKIP)

    @classmethod
    def rename(cls, new_name: str) -> "ConflictDecision":
        return cls(RENAME, new_name)

    @property
    def is_write(self) -> bool:
        return self.action == WRITE

    @property
    def is_skip(self) -> bool:
        return self.action == SKIP

    @property
    def is_rename(self) -> bool:
        return self.action == RENAME


@dataclass
class DecisionContext:
    pin: Optional[Choice] = None
    cancelled: bool = False
    decisions: List[Tuple[str, str, ConflictDecision]] = field(default_factory=list)
    claimed: Set[ArtifactId] = field(default_factory=set)

    @classmethod
    def pinned(cls, choice: Choice) -> "DecisionContext":
        if not choice.pins:
            raise ValueError(f"{choice.value} is not an apply-to-all choice")
        return cls(pin=choice)

    def record(self, package: str, class_name: str, decision: ConflictDecision) -> None:
        self.decisions.append((package, class_name, decision))
        if decision.is_write:
            self.claimed.add((package, class_name))
        elif decision.is_rename and decision.new_name:
            self.claimed.add((package, decision.new_name))


def always(choice: Choice) -> DecisionOracle:
    def oracle(package: str, class_name: str) -> Optional[Choice]:
        return choice
    return oracle


class ConflictResolver:
    def __init__(self, oracle: DecisionOracle, alternative_name: Optional[AlternativeName] = None) -> None:
        self.oracle = oracle
        self.alternative_name = alternative_name

    def resolve(
        self,
        package: str,
        class_name: str,
        existing: Set[ArtifactId],
        context: DecisionContext,
    ) -> ConflictDecision:
        key = (package, class_name)
        if key not in existing and key not in context.claimed:
            decision = ConflictDecision.write()
        else:
            choice = context.pin
            if choice is None:
                choice = self.oracle(package, class_name)
                if choice is None:
                    context.cancelled = True
                    choice = Choice.SKIP_ALL
                if choice.pins:
                    context.pin = choice

            action = choice.action
            if action == Choice.SKIP:
                decision = ConflictDecision.skip()
            elif action == Choice.RENAME:
                decision = ConflictDecision.rename(self.free_name(package, class_name, existing, context))
            else:
                decision = ConflictDecision.write()

        context.record(package, class_name, decision)
        return decision

    def free_name(self, package: str, class_name: str, existing: Set[ArtifactId], context: DecisionContext) -> str:
        def taken(name: str) -> bool:
            return (package, name) in existing or (package, name) in context.claimed

        candidate = class_name
        for n in range(2, MAX_RENAME_ATTEMPTS + 2):
            if self.alternative_name is not None:
                candidate = self.alternative_name(candidate)
            else:
                candidate = f"{class_name}{n}"
            if not taken(candidate):
                return candidate
        raise ApiGenError(f"No free name for {package}.{class_name}")


def rename_declaration(source_text: str, old: str, new: str) -> str:
    """Rename the generated type (and its constructors) inside its own source."""
    return re.sub(rf"\b{re.escape(old)}\b", new, source_text)
