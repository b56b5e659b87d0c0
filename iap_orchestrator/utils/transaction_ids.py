"""Transaction identifier generation utilities.

Generates identifiers for transactions created by the in-memory purchase
store, in the numeric format the App Store uses.
"""

import uuid

TRANSACTION_ID_LENGTH = 16


def generate_transaction_id() -> str:
    """Generate a unique App Store-style transaction ID.

    Format: 16 digits, never starting with zero
    Example: 1000000912345678

    Returns:
        Transaction ID string
    """
    digits = str(uuid.uuid4().int)[: TRANSACTION_ID_LENGTH - 1]
    return "1" + digits.zfill(TRANSACTION_ID_LENGTH - 1)


def truncate_for_log(value: str, length: int = 20) -> str:
    """Shorten identifiers before logging them."""
    return value[:length] + "..." if len(value) > length else value
