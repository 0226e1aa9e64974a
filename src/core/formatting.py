"""
Human-readable number formatting for console output and reports.
"""

import math

MINUS = "−"

_SUFFIXES = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def format_irt(n: float) -> str:
    """Compact local-currency amount: 1234567 -> '1.2M'"""
    sign = MINUS if n < 0 else ""
    value = abs(n)
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{sign}{value / threshold:.1f}{suffix}"
    return f"{sign}{value:.0f}"


def format_pct(n: float) -> str:
    """Signed percentage with 3 decimals: 2.9 -> '+2.900%'"""
    return f"{'+' if n >= 0 else ''}{n:.3f}%"


def format_price(n: float) -> str:
    """Price with up to 8 significant digits, grouped, never in exponent form"""
    if n == 0:
        return "0"
    if not math.isfinite(n):
        return str(n)
    rounded = float(f"{n:.8g}")
    decimals = max(0, 8 - 1 - math.floor(math.log10(abs(rounded))))
    return _strip_zeros(f"{rounded:,.{decimals}f}")


def format_amount(n: float) -> str:
    """Quantity with at most 6 fraction digits; huge values fall back to format_irt"""
    if abs(n) >= 1e9:
        return format_irt(n)
    return _strip_zeros(f"{n:,.6f}")


def _strip_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")
