"""
Operator overrides for individual pallet sizes.

In-memory only. Persisted as the partition record's custom_pallet_crates
map, whose keys are strings.
"""

from typing import Mapping, Optional

import structlog

from exceptions import InvalidPalletOverrideError

logger = structlog.get_logger(__name__)


class OverrideStore:
    """
    Pallet ordinal -> operator crate count.

    Any mutation marks the store dirty until mark_saved() is called.
    Range checks against what is left to distribute are left to the
    allocation calculator, which clamps.
    """

    def __init__(self, overrides: Optional[Mapping[int, int]] = None):
        self._overrides: dict[int, int] = {}
        for ordinal, crates in (overrides or {}).items():
            self._validate(ordinal, crates)
            self._overrides[int(ordinal)] = int(crates)
        self._dirty = False

    @classmethod
    def from_record(cls, custom_pallet_crates: Optional[Mapping]) -> "OverrideStore":
        """Load from a stored map with string ordinals ({"3": 10})."""
        return cls({int(k): int(v) for k, v in (custom_pallet_crates or {}).items()})

    @staticmethod
    def _validate(ordinal: int, crates: int) -> None:
        if int(ordinal) < 1:
            raise InvalidPalletOverrideError(ordinal, crates, "Pallet ordinal must be at least 1")
        if int(crates) < 0:
            raise InvalidPalletOverrideError(ordinal, crates, "Override crate count cannot be negative")

    def set(self, ordinal: int, crates: int) -> None:
        """Set the crate count for one pallet."""
        self._validate(ordinal, crates)
        self._overrides[int(ordinal)] = int(crates)
        self._dirty = True
        logger.debug("pallet_override_set", ordinal=ordinal, crates=crates)

    def reset_all(self) -> None:
        """Drop every override."""
        self._overrides.clear()
        self._dirty = True
        logger.debug("pallet_overrides_reset")

    def get(self, ordinal: int) -> Optional[int]:
        return self._overrides.get(ordinal)

    def as_dict(self) -> dict[int, int]:
        return dict(sorted(self._overrides.items()))

    def to_record(self) -> dict[str, int]:
        return {str(k): v for k, v in sorted(self._overrides.items())}

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def mark_saved(self) -> None:
        self._dirty = False

    def __len__(self) -> int:
        return len(self._overrides)

    def __contains__(self, ordinal: int) -> bool:
        return ordinal in self._overrides
