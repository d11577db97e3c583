from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_money(value):
    """Quantize any number to two decimal places"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount, percentage):
    return to_money(Decimal(amount) * Decimal(percentage) / Decimal(100))


def to_paise(amount):
    """Gateway amounts are sent in the smallest currency unit"""
    return int(to_money(amount) * 100)
