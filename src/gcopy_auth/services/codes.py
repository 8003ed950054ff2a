"""One-time code generation."""

import random
import re
import time

CODE_LENGTH = 6

_CODE_PATTERN = re.compile(r"[0-9]{6}")


def generate_code() -> str:
    """Generate a 6-digit numeric code. Leading zeros are allowed."""
    rng = random.Random(time.time_ns())
    return "".join(str(rng.randrange(10)) for _ in range(CODE_LENGTH))


def is_valid_code(code: str) -> bool:
    """Validate code format: exactly 6 ASCII digits."""
    return _CODE_PATTERN.fullmatch(code) is not None
