"""Supporting utilities: hashing, deferred values and warp-aware timers."""

from understudy.utils import timers
from understudy.utils.common import humanise, make_hash
from understudy.utils.deferred import Deferred

__all__ = [
    "Deferred",
    "humanise",
    "make_hash",
    "timers",
]
