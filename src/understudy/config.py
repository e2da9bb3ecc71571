"""
Configuration settings for understudy doubles.

Values are read from the environment once, at import time, so a test session
can tune recording behaviour without touching test code.
"""

import os

SNAPSHOT_ARGS = os.getenv("UNDERSTUDY_SNAPSHOT_ARGS", "true").lower() not in (
    "0",
    "false",
    "no",
)
KEY_HASH_LENGTH = int(os.getenv("UNDERSTUDY_KEY_HASH_LENGTH", "16"))
DEFAULT_FUNC_NAME = os.getenv("UNDERSTUDY_DEFAULT_FUNC_NAME", "func")
