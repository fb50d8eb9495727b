import random
import string

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def awakening_code(prefix: str, tag: str | None = None, rng: random.Random | None = None) -> str:
    """Build codes like `SGM-MER-7QK2ZD` from a prefix and an optional tag."""
    r = rng or random.Random()
    suffix = "".join(r.choice(_CODE_ALPHABET) for _ in range(6))
    if tag:
        return f"{prefix}-{tag.upper()[:3]}-{suffix}"
    return f"{prefix}-{suffix}"
