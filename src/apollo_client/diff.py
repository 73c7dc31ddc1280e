"""Compute key level changes between two configuration snapshots."""

from __future__ import annotations

from typing import List, Mapping

from .types import Change, ChangeKind


def diff(old: Mapping[str, str], new: Mapping[str, str]) -> List[Change]:
    """Return the changes that turn ``old`` into ``new``.

    Additions and updates come first, in ``new`` iteration order, followed
    by deletions in ``old`` iteration order.  Keys whose value did not change
    produce no entry.
    """

    changes: List[Change] = []
    for key, value in new.items():
        if key not in old:
            changes.append(Change(ChangeKind.ADDED, key, value))
        elif old[key] != value:
            changes.append(Change(ChangeKind.UPDATED, key, value))

    for key, value in old.items():
        if key not in new:
            changes.append(Change(ChangeKind.DELETED, key, value))
    return changes
