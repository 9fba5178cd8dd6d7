from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

NEXT_DAYS = 3
TIME_SLOTS = ("10:00", "12:30", "16:00", "17:30", "20:00", "22:30")
OPEN_THRESHOLD = 0.35

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def mulberry32(seed: int) -> Callable[[], float]:
    """
    32-bit mulberry32 PRNG, bit-compatible with the browser implementation
    so the booking UI and the API draw the same schedule.
    """
    state = seed & _MASK

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    return next_float


def build_days(n: int = NEXT_DAYS, start: Optional[date] = None) -> List[date]:
    base = start or date.today()
    return [base + timedelta(days=i) for i in range(n)]


def available_times_for(movie_id: int, day: date) -> List[str]:
    """Time slots open for a movie on a day; stable for the same inputs."""
    seed = int(movie_id or 0) * 97 + int(day.strftime("%Y%m%d")) * 31 + 12345
    rnd = mulberry32(seed)
    return [slot for slot in TIME_SLOTS if rnd() > OPEN_THRESHOLD]


def build_schedule(movie_id: int, days: List[date]) -> Dict[date, List[str]]:
    return {d: available_times_for(movie_id, d) for d in days}
