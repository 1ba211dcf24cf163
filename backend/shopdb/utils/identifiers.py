from __future__ import annotations

import os
import random
import string
import time
import uuid


def generate_uuid7() -> str:
    """
    Generate a UUIDv7 string (time-ordered).

    UUIDv7 layout per draft:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 74-bit randomness
    """
    ts_ms = int(time.time() * 1000)
    raw = bytearray(ts_ms.to_bytes(6, "big", signed=False) + os.urandom(10))
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def generate_short_id(prefix: str = "ID") -> str:
    """
    Short readable primary key like 'SHOP-1F2A9C3D'.

    Used as a SQLAlchemy column default, so it must work when called
    with zero arguments.
    """
    alphabet = string.ascii_uppercase + string.digits
    block = "".join(random.choices(alphabet, k=8))
    return f"{prefix}-{block}" if prefix else block


def work_order_prefix(year: int, month: int) -> str:
    """Monthly work-order prefix, e.g. 2026-10 -> 'WO2610'."""
    return f"WO{year % 100:02d}{month:02d}"


def format_work_order_number(year: int, month: int, seq: int) -> str:
    """'WO<YY><MM>-<seq>' with the sequence zero-padded to three digits."""
    return f"{work_order_prefix(year, month)}-{seq:03d}"


def invoice_number_for(wo_number: str) -> str:
    """Invoices reuse the work-order number: WO2610-004 -> INV2610-004."""
    return wo_number.replace("WO", "INV", 1)
