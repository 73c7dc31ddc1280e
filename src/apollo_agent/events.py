"""Event primitives consumed by the listener registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from apollo_client.types import Change


@dataclass(frozen=True)
class NamespaceChanged:
    """A namespace moved to a new release.

    ``changes`` lists additions and updates before deletions, as produced by
    :func:`apollo_client.diff.diff`.
    """

    namespace: str
    old_configs: Mapping[str, str] = field(default_factory=dict)
    new_configs: Mapping[str, str] = field(default_factory=dict)
    changes: Sequence[Change] = ()
