"""Integer-only rendering of native amounts in display units."""


def format_units(value: int, scale: int = 10**9, decimals: int = 4) -> str:
    """Render ``value / scale`` with ``decimals`` places, rounded half-up.

    Uses divmod on ints only, so values above 2**53 render exactly.

    >>> format_units(2_000_000_000)
    '2.0000'
    >>> format_units(1_234_550_000)
    '1.2346'
    """
    if isinstance(value, float) or isinstance(scale, float):
        raise TypeError("format_units takes integers only")
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")

    sign = "-" if value < 0 else ""
    whole, rem = divmod(abs(value), scale)

    step = 10**decimals
    # half-up: floor((rem * step) / scale + 1/2)
    frac = (rem * step * 2 + scale) // (scale * 2)
    if frac >= step:
        whole += 1
        frac -= step

    if decimals == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac:0{decimals}d}"


def signed_amount(value: int, positive: bool, scale: int = 10**9, decimals: int = 4) -> str:
    """Magnitude of ``value`` in display units, prefixed with ``+`` or ``-``."""
    return ("+" if positive else "-") + format_units(abs(value), scale, decimals)
