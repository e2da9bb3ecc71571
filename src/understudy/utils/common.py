import hashlib

from understudy.config import KEY_HASH_LENGTH


def make_hash(value: str) -> str:
    """Create a short hash from a canonical argument string."""
    return hashlib.sha256(value.encode()).hexdigest()[:KEY_HASH_LENGTH]


def humanise(number: int) -> str:
    """Render a call count the way assertion messages read it."""
    if number == 1:
        return "once"
    if number == 2:
        return "twice"
    return f"{number} times"
