from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round to a fixed number of decimals, rounding ties away from zero. Unlike round(), an exact tie such as 5.125
    rounds up to 5.13 rather than to the even neighbour.

    :param value: The value to round
    :param decimals: The number of decimals to keep
    :return: The rounded value
    """
    return float(Decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP))
