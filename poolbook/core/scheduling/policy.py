"""Schedule policy: which days and hours are bookable, and by whom."""

from datetime import date

from .models import Role, ScheduleConfig

SATURDAY = 5


class SchedulePolicy:
    """Pure predicates over the facility's ScheduleConfig."""

    def __init__(self, config: ScheduleConfig) -> None:
        self.config = config

    def is_operating_day(self, day: date) -> bool:
        return day.weekday() in self.config.operating_weekdays

    def closing_hour(self, day: date) -> int:
        if day.weekday() == SATURDAY:
            return self.config.close_hour_saturday
        return self.config.close_hour_weekday

    def is_privileged_hour(self, hour: int) -> bool:
        return hour in self.config.privileged_hours

    def can_use_hour(self, hour: int, role: Role) -> bool:
        return not self.is_privileged_hour(hour) or role.is_privileged

    def operating_hours(self, day: date) -> list[int]:
        """Bookable hours of ``day``; empty when the pool is closed."""
        if not self.is_operating_day(day):
            return []
        return list(range(self.config.open_hour, self.closing_hour(day)))
