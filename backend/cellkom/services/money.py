from __future__ import annotations

import re


_IDR_PREFIX = re.compile(r"^rp\.?", re.IGNORECASE)
_GROUPED = re.compile(r"^\d{1,3}(\.\d{3})+$")

# Upper bounds accepted from clients; money columns are BIGINT, stock is INTEGER.
MAX_AMOUNT = 1_000_000_000_000
MAX_QUANTITY = 1_000_000


def _group_thousands(value: int) -> str:
    return f"{value:,}".replace(",", ".")


def format_idr(amount: int) -> str:
    """Rupiah as printed on receipts: `Rp 1.500.000`, `-Rp 500`."""
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {_group_thousands(abs(amount))}"


def format_idr_short(amount: int) -> str:
    """Compact price for narrow receipt columns: 15000 -> `15k`, 12500 -> `12.5k`."""
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount < 1000:
        return f"{sign}{amount}"
    thousands, rest = divmod(amount, 1000)
    if rest == 0:
        return f"{sign}{thousands}k"
    decimals = f"{rest:03d}".rstrip("0")
    return f"{sign}{thousands}.{decimals}k"


def parse_idr(text: str) -> int:
    """
    Parse a Rupiah amount typed by staff.

    Accepts `Rp 1.500.000`, `1.500.000`, `1500000` and blanks (0). Rupiah has no
    minor unit in practice, so decimal fractions are rejected.
    """
    s = text.strip()
    if not s:
        return 0

    sign = 1
    if s.startswith("-"):
        sign = -1
        s = s[1:].strip()
    s = _IDR_PREFIX.sub("", s).strip().replace(" ", "")
    if not s:
        raise ValueError(f"Invalid amount: {text!r}")

    if s.isdigit():
        return sign * int(s)
    if _GROUPED.match(s):
        return sign * int(s.replace(".", ""))
    raise ValueError(f"Invalid amount: {text!r}")


def clamp_non_negative(amount: int) -> int:
    return amount if amount > 0 else 0
