import secrets
import string
from datetime import date
from typing import Optional


def generate_custom_id(prefix: str, length: int = 8) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


def generate_invoice_number(on: Optional[date] = None) -> str:
    """INV-YYYYMMDD-NNNN, e.g. INV-20240115-0042."""
    on = on or date.today()
    suffix = str(secrets.randbelow(10000)).zfill(4)
    return f"INV-{on.strftime('%Y%m%d')}-{suffix}"
