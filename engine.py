"""Pure exam logic: net scoring and input parsing. No UI."""
# Scoring: correct +1.0, incorrect -0.25, blank 0.0
# Net = correct - incorrect / 4
import math

CORRECT_SCORE = 1.0
INCORRECT_SCORE = -0.25
NET_DECIMALS = 2


def parse_count(value) -> float:
    """Permissive number parse for form input. Blank, None or garbage -> 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def is_blank(value) -> bool:
    """True when a form field was left empty (None or whitespace)."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def net(correct, incorrect) -> float:
    """Net = correct - incorrect / 4. No rounding here."""
    return parse_count(correct) * CORRECT_SCORE + parse_count(incorrect) * INCORRECT_SCORE


def format_net(value) -> str:
    return f"{parse_count(value):.{NET_DECIMALS}f}"
