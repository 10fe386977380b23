"""Cookie retention and removal engine package."""

from cookie_hunter.engine.scheduler import JobScheduler, QtJobScheduler
from cookie_hunter.engine.queues import DebouncedPageQueue, RemovalQueue
from cookie_hunter.engine.evaluator import RemovabilityEvaluator
from cookie_hunter.engine.hunter import CookieHunter, HunterStats

__all__ = [
    "JobScheduler",
    "QtJobScheduler",
    "DebouncedPageQueue",
    "RemovalQueue",
    "RemovabilityEvaluator",
    "CookieHunter",
    "HunterStats",
]
