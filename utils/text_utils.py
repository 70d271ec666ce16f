"""
Text utilities for client names with accents.

Used to build the client code embedded in pallet references.
"""

import unicodedata
from typing import Optional


def normalize_client_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize client name for codes and comparison.

    Handles French/Spanish accents and surrounding whitespace:
    - "Coopérative Élevage" → "COOPERATIVE ELEVAGE"
    - "  ferme du sud  " → "FERME DU SUD"

    Args:
        name: Original client name (may have accents, mixed case)

    Returns:
        Normalized uppercase ASCII string, or None if input is empty
    """
    if not name:
        return None

    name = name.strip()

    if not name:
        return None

    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize('NFD', name)

    # Remove accent marks (combining characters in Unicode category 'Mn')
    ascii_name = ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )

    return ascii_name.upper()


def alphanumeric_only(text: Optional[str]) -> str:
    """
    Drop spaces and punctuation, keep letters and digits.

    "S.A.R.L. El Amal" → "SARLElAmal"
    """
    if not text:
        return ""
    return ''.join(c for c in text if c.isalnum())
