"""
Currency precision lookup.

Number of minor-unit digits per ISO 4217 currency code, used to round
calculated taxes. Currencies not listed use two digits.
"""

DEFAULT_PRECISION = 2

CURRENCY_PRECISION = {
    'bhd': 3,
    'bif': 0,
    'clp': 0,
    'djf': 0,
    'gnf': 0,
    'iqd': 3,
    'isk': 0,
    'jod': 3,
    'jpy': 0,
    'kmf': 0,
    'krw': 0,
    'kwd': 3,
    'lyd': 3,
    'omr': 3,
    'pyg': 0,
    'rwf': 0,
    'tnd': 3,
    'ugx': 0,
    'vnd': 0,
    'vuv': 0,
    'xaf': 0,
    'xof': 0,
    'xpf': 0,
}


def get_currency_precision(currency: str, default: int = DEFAULT_PRECISION) -> int:
    """Return the decimal precision for a currency code (case-insensitive)."""
    if not currency:
        return default
    return CURRENCY_PRECISION.get(str(currency).strip().lower(), default)
