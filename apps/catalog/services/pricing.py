"""Course price parsing."""

import re
from decimal import Decimal, InvalidOperation

from apps.store.records import CENT

# Leading currency symbols or codes, e.g. "$", "US$", "EUR "
CURRENCY_PREFIX_RE = re.compile(r'^\s*(?:[A-Za-z]{0,3}[$€£¥]|[A-Za-z]{3}\s)\s*')


def parse_price(raw) -> Decimal:
    """
    Parse a stored course price.

    Prices are stored as strings with a currency prefix (``"$39.99"``).
    The prefix is stripped and the rest parsed; anything unparseable becomes
    zero instead of raising, as do values too large to hold to the cent.

    >>> parse_price('$39.99')
    Decimal('39.99')
    >>> parse_price('N/A')
    Decimal('0.00')
    """
    if raw is None or isinstance(raw, bool):
        return Decimal('0.00')
    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    else:
        text = CURRENCY_PREFIX_RE.sub('', str(raw)).replace(',', '').strip()

    try:
        price = Decimal(text)
        if not price.is_finite() or price < 0:
            return Decimal('0.00')
        # Fails once the value needs more digits than the context precision
        return price.quantize(CENT)
    except InvalidOperation:
        return Decimal('0.00')
