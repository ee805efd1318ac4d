"""Enumerate jails and resolve a user-supplied name or filter to one of them."""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from jail.core.errors import JailNotFoundError
from jail.core.metadata import MetadataStore
from jail.models import JailRecord

# (prompt, items) -> index of the chosen item
Chooser = Callable[[str, Sequence[str]], int]

SELECT_PROMPT = "Select a jail"


def filter_names(names: Sequence[str], pattern: str) -> List[str]:
    """Filter jail names by a case-insensitive prefix.

    A name matches if it starts with the pattern, or if it is a single
    ``owner/repo`` pair and either half starts with the pattern.
    """
    needle = pattern.lower()
    matches = []
    for name in names:
        lowered = name.lower()
        if lowered.startswith(needle):
            matches.append(name)
            continue

        parts = lowered.split("/")
        if len(parts) == 2 and any(part.startswith(needle) for part in parts):
            matches.append(name)
    return matches


class JailRegistry:
    """Lists jails known to a metadata store and selects among them."""

    def __init__(self, store: MetadataStore):
        self.store = store

    def list_entries(self) -> List[Tuple[str, Optional[JailRecord]]]:
        """All jail directories holding a record file; record is None if unreadable."""
        return list(self.store.iter_records())

    def list_names(self) -> List[str]:
        """Names of jails with a parseable record."""
        return sorted(name for name, record in self.store.iter_records() if record is not None)

    def resolve(self, pattern: Optional[str], chooser: Chooser) -> str:
        """Resolve a name or filter to exactly one jail name.

        An exact (case-insensitive) name match is returned without prompting.
        Otherwise every candidate is offered to ``chooser``, even when only
        one matches.

        Raises:
            JailNotFoundError: If there are no jails or nothing matches
        """
        names = self.list_names()
        if not names:
            raise JailNotFoundError("No jails found. Create one with: jail clone <url>")

        candidates = names
        if pattern:
            candidates = filter_names(names, pattern)
            if not candidates:
                raise JailNotFoundError(f"No jails match filter '{pattern}'")

            for name in candidates:
                if name.lower() == pattern.lower():
                    return name

        index = chooser(SELECT_PROMPT, candidates)
        if not 0 <= index < len(candidates):
            raise JailNotFoundError(f"Invalid selection: {index + 1}")
        return candidates[index]
