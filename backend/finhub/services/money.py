from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from finhub.errors import InvalidAmount


CURRENCY_SYMBOL = "R$"
# pt-BR currency output separates symbol and value with a no-break space.
SYMBOL_SEPARATOR = "\u00a0"


def parse_amount(display: str) -> int:
    """
    Convert a pt-BR currency string into integer cents.

    "R$ 53.549,47" -> 5354947, "1.000" -> 100000, "0,5" -> 50.
    """
    clean = "".join(str(display).replace(CURRENCY_SYMBOL, "", 1).split())
    clean = clean.replace(".", "").replace(",", ".", 1)
    try:
        value = Decimal(clean)
        if not value.is_finite():
            raise InvalidAmount(f"Invalid amount: {display}")
        # quantize fails once the cents no longer fit the decimal context precision.
        cents = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidAmount(f"Invalid amount: {display}") from exc

    return int(cents)


def format_amount(cents: int) -> str:
    """Render integer cents as a pt-BR currency string, e.g. 123456 -> "R$ 1.234,56"."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(int(cents)), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}{CURRENCY_SYMBOL}{SYMBOL_SEPARATOR}{grouped},{centavos:02d}"
