# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QATagFilter
# -----------------------------------------------------------------------------
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List

_BRACKETED = re.compile(r"<([^<>]+)>")


def parse_tags(tags: str) -> List[str]:
    """
    Split a Stack Exchange tag string into tag names.

    Older dumps use "<quantum-mechanics><energy>", newer ones "|quantum-mechanics|energy|".
    """
    if not tags:
        return []
    bracketed = _BRACKETED.findall(tags)
    if bracketed:
        return [t.strip().lower() for t in bracketed if t.strip()]
    return [t.strip().lower() for t in tags.split("|") if t.strip()]


@dataclass(frozen=True)
class QATagFilter:
    """
    Eligibility predicate: a record may be embedded if at least one of its
    tags is on the allow-list.
    """
    allowed: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_tags(cls, tags: Iterable[str]) -> "QATagFilter":
        cleaned = frozenset(t.strip().strip("<>|").lower() for t in tags if t and t.strip())
        if not cleaned:
            raise ValueError("Tag allow-list must contain at least one tag")
        return cls(allowed=cleaned)

    def is_eligible(self, tags: str) -> bool:
        return any(t in self.allowed for t in parse_tags(tags))

    def __call__(self, tags: str) -> bool:
        return self.is_eligible(tags)
