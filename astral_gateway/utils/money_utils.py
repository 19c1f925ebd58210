"""Currency rounding helpers (USD, two decimal places)"""

import math


def round_currency(amount: float) -> float:
    """Round to the nearest cent"""
    return round(amount, 2)


def floor_to_cent(amount: float) -> float:
    """Round down to a whole cent so a prefilled payment never overshoots a balance"""
    # 0.29 * 100 == 28.999999999999996, so snap float noise before flooring
    return math.floor(round(amount * 100, 6)) / 100
