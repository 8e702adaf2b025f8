import calendar
import datetime
from enum import IntEnum
from typing import Union


class ClockUnit(IntEnum):
    """
    Length of one simulation tick, the value is the number of months.
    """

    MONTH = 1
    TRIMESTER = 3
    SEMESTER = 6
    YEAR = 12


def add_months(date: datetime.date, months: int) -> datetime.date:
    """
    Shift a date by a number of calendar months, clamping the day to the
    last day of the target month (31 Jan + 1 month = 28/29 Feb).
    """
    month_index = date.month - 1 + months
    year = date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return date.replace(year=year, month=month, day=day)


class SimulationClock:
    def __init__(
        self,
        start_date: Union[str, datetime.date] = None,
        unit: ClockUnit = ClockUnit.MONTH,
    ):
        if start_date is None:
            start_date = datetime.date.today()
        elif isinstance(start_date, str):
            start_date = datetime.date(
                *[int(value) for value in start_date.split(" ")[0].split("-")]
            )
        elif isinstance(start_date, datetime.datetime):
            start_date = start_date.date()
        self.start_date = start_date
        if isinstance(unit, str):
            unit = ClockUnit[unit.upper()]
        self.unit = ClockUnit(unit)

    def date(self, tick: int) -> datetime.date:
        """
        Calendar date of a clock tick, tick 0 being the start date.
        """
        return add_months(self.start_date, tick * int(self.unit))

    def date_str(self, tick: int) -> str:
        return self.date(tick).strftime("%Y-%m-%d")

    def __repr__(self):
        return f"SimulationClock({self.start_date.isoformat()}, {self.unit.name})"
