from __future__ import annotations

from .constants import USD_DECIMALS


def scale_decimals(value: int, from_decimals: int, to_decimals: int) -> int:
    """Rescale a fixed-point integer between decimal precisions.

    Args:
        value: Integer amount expressed with ``from_decimals`` decimal places.
        from_decimals: Current decimal precision of ``value``.
        to_decimals: Target decimal precision.

    Returns:
        The amount expressed with ``to_decimals`` decimal places.

    Notes:
        - Scaling up multiplies by 10**(to - from).
        - Scaling down uses integer division (truncates toward zero).
    """
    if from_decimals == to_decimals:
        return value
    if from_decimals < to_decimals:
        return value * (10 ** (to_decimals - from_decimals))
    return value // (10 ** (from_decimals - to_decimals))


def to_usd(amount: int, token_decimals: int, price: int, price_decimals: int) -> int:
    """Value ``amount`` smallest units of a token in USD with 6 decimals.

    ``price`` is the USD price of one whole token with ``price_decimals``
    decimals, as reported by a Chainlink aggregator. The product is taken
    before rescaling so truncation happens once.
    """
    return scale_decimals(amount * price, token_decimals + price_decimals, USD_DECIMALS)


def format_usd(value_usd: int) -> str:
    """Render a 6-decimal USD integer as a dollar string."""
    whole, frac = divmod(value_usd, 10**USD_DECIMALS)
    return f"${whole:,}.{frac // 10 ** (USD_DECIMALS - 2):02d}"


def format_units(amount: int, decimals: int, places: int = 6) -> str:
    """Render a fixed-point integer with ``places`` decimals, truncating."""
    whole, frac = divmod(amount, 10**decimals)
    if places == 0:
        return f"{whole:,}"
    shown = scale_decimals(frac, decimals, places)
    return f"{whole:,}.{shown:0{places}d}"
