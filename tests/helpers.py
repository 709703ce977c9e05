from datetime import datetime, timedelta

from booking.core.clock import utcnow


class InMemoryRedis:
    """Dict-backed replacement for the few Redis commands the app uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, "0")) + 1)
        return int(self.data[key])

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


def future(days=7, hour=10, minute=0):
    """A naive UTC datetime safely in the future, on a fixed clock time."""
    day = utcnow() + timedelta(days=days)
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def iso(value: datetime) -> str:
    return value.isoformat()
