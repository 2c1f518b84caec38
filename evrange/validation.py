import math
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class ValidationError(Exception):
    """
    Raised when an input is missing, not numeric or outside of its domain
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


def is_missing(raw: Mapping[str, Any], key: str) -> bool:
    return raw.get(key) is None


def parse_number(key: str, value: Any, domain: Optional[Tuple[float, float]] = None) -> float:
    """
    Parse a numeric input, accepting numbers as well as numeric strings as entered in a form

    :param key: The name of the input, used for error reporting
    :param value: The raw value
    :param domain: Optional inclusive (low, high) bounds that the value has to lie within
    :return: The parsed value
    """
    if isinstance(value, bool):
        raise ValidationError(key, f"expected a number, got '{value}'")
    if isinstance(value, str):
        if value.strip() == "":
            raise ValidationError(key, "is required")
        try:
            number = float(value)
        except ValueError:
            raise ValidationError(key, f"expected a number, got '{value}'")
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValidationError(key, f"expected a number, got '{value}'")

    if not math.isfinite(number):
        raise ValidationError(key, f"expected a finite number, got '{value}'")
    if domain is not None:
        low, high = domain
        if number < low or number > high:
            raise ValidationError(key, f"has to be in range [{low:g}, {high:g}], was '{number:g}'")
    return number


def require_number(raw: Mapping[str, Any], key: str, domain: Optional[Tuple[float, float]] = None) -> float:
    if is_missing(raw, key):
        raise ValidationError(key, "is required")
    return parse_number(key, raw[key], domain)


def require_numbers(raw: Mapping[str, Any], domains: Iterable[Tuple[str, Tuple[float, float]]]) -> Dict[str, float]:
    """
    Parse several required numeric inputs at once. The first invalid input raises.
    """
    return {key: require_number(raw, key, domain) for key, domain in domains}


def optional_flag(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    if is_missing(raw, key):
        return default
    value = raw[key]
    if not isinstance(value, bool):
        raise ValidationError(key, f"expected true or false, got '{value}'")
    return value


def require_choice(raw: Mapping[str, Any], key: str, choices: Iterable[str]) -> str:
    if is_missing(raw, key):
        raise ValidationError(key, "is required")
    value = raw[key]
    choices = list(choices)
    if value not in choices:
        raise ValidationError(key, f"has to be one of {', '.join(choices)}, was '{value}'")
    return value


def lookup_preset(raw: Mapping[str, Any], key: str, presets: Mapping[str, float]) -> Optional[float]:
    """
    Look up the numeric value of a named preset

    :return: The preset's value, or None if no preset was given
    """
    if is_missing(raw, key):
        return None
    return presets[require_choice(raw, key, presets.keys())]


def optional_number(raw: Mapping[str, Any], key: str, default: float,
                    domain: Optional[Tuple[float, float]] = None) -> float:
    if is_missing(raw, key):
        return default
    return parse_number(key, raw[key], domain)
