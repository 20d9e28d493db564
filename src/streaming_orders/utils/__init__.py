from .time_utils import Clock, FixedClock, SystemClock, add_calendar_period, truncate_to_seconds, utc_now

__all__ = ["Clock", "FixedClock", "SystemClock", "add_calendar_period", "truncate_to_seconds", "utc_now"]
