"""
Pallet reference generation.

Format: PAL-{YYYYMMDD}-{CCC}-{NNN}
    YYYYMMDD  reference date (day the partition was first computed/saved)
    CCC       3-character client code
    NNN       pallet ordinal, zero-padded to 3 digits

Deterministic for a given (date, client name, ordinal). Two clients whose
names share the same first three letters get the same code on the same
day; collisions are not checked here.
"""

from datetime import date, datetime
from typing import Optional

from exceptions import ValidationError
from utils.text_utils import alphanumeric_only, normalize_client_name

REFERENCE_PREFIX = "PAL"
CLIENT_CODE_LENGTH = 3
CLIENT_CODE_FALLBACK = "CLI"
CLIENT_CODE_PAD = "X"
ORDINAL_DIGITS = 3


def client_code(client_name: Optional[str]) -> str:
    """
    Build the 3-character client code.

    Accents removed, spaces and punctuation stripped, uppercased, then
    truncated or right-padded with X. Empty names give CLI.

    Examples:
        "Élodie Farms" → "ELO"
        "Li" → "LIX"
        "" → "CLI"
    """
    code = alphanumeric_only(normalize_client_name(client_name))
    if not code:
        return CLIENT_CODE_FALLBACK
    return code[:CLIENT_CODE_LENGTH].ljust(CLIENT_CODE_LENGTH, CLIENT_CODE_PAD)


def generate_pallet_reference(
    reference_date: date,
    client_name: Optional[str],
    ordinal: int
) -> str:
    """
    Generate the printed reference for one pallet.

    Args:
        reference_date: Date embedded in the reference
        client_name: Client display name
        ordinal: 1-based pallet number

    Returns:
        Reference string, e.g. "PAL-20251019-FER-003"

    Raises:
        ValidationError: If ordinal < 1
    """
    if ordinal < 1:
        raise ValidationError(
            code="PALLET_INVALID_ORDINAL",
            message="Pallet ordinal must be at least 1",
            details={"ordinal": ordinal}
        )

    return "-".join([
        REFERENCE_PREFIX,
        reference_date.strftime("%Y%m%d"),
        client_code(client_name),
        str(ordinal).zfill(ORDINAL_DIGITS),
    ])


def parse_reference_date(reference: Optional[str]) -> Optional[date]:
    """
    Date embedded in a reference, or None if it does not parse.

    "PAL-20251019-FER-003" → date(2025, 10, 19)
    """
    parts = (reference or "").split("-")
    if len(parts) < 4 or parts[0] != REFERENCE_PREFIX:
        return None
    try:
        return datetime.strptime(parts[1], "%Y%m%d").date()
    except ValueError:
        return None
