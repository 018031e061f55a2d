"""
Number and string formatting utilities.
"""

from typing import Optional, Union


def format_number(num: Optional[float]) -> str:
    """
    Format a count with thousands separators.

    Args:
        num: The input number.

    Returns:
        str: e.g. "1,234". None and 0 both render "0".
    """
    if not num:
        return "0"
    return f"{num:,.0f}"


def format_cents(cents: Optional[int], currency: str = "usd") -> str:
    """
    Render an amount stored in cents.

    Examples:
        >>> format_cents(500)
        '$5.00'
        >>> format_cents(123456)
        '$1,234.56'
        >>> format_cents(2500, "eur")
        '25.00 EUR'
    """
    amount = (cents or 0) / 100
    if (currency or "usd").lower() == "usd":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency.upper()}"


def parse_money_to_cents(value: Union[str, int, float, None]) -> Optional[int]:
    """
    Parse a user-entered dollar amount ("12", "12.5", "$1,299.99") into cents.

    Returns:
        Cents as int, 0 for blank input, or None when the value is not a number.
    """
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(round(value * 100))
    cleaned = value.strip().replace("$", "").replace(",", "")
    if not cleaned:
        return 0
    try:
        return int(round(float(cleaned) * 100))
    except ValueError:
        return None


def cents_to_input(cents: Optional[int]) -> str:
    """Render cents for an <input> value ("12.50")."""
    if cents is None:
        return ""
    return f"{cents / 100:.2f}"


def humanize_tier(tier: Optional[str]) -> str:
    """'premium_lifetime' -> 'Premium Lifetime'."""
    if not tier:
        return "Free"
    return tier.replace("_", " ").title()


def truncate(text: Optional[str], length: int = 60) -> str:
    if not text:
        return ""
    return text if len(text) <= length else text[: length - 1] + "…"
