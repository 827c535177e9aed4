"""Date manipulation utilities"""

from datetime import date, timedelta
from dateutil.relativedelta import relativedelta

from layaway_gateway.domain.models import Cadence


def add_cadence(from_date: date, cadence: Cadence) -> date:
    """
    Advance a due date by one installment period.

    Monthly steps clamp to the last day of a shorter month and are taken from
    the given date, so the day-of-month does not recover:
    2024-01-31 -> 2024-02-29 -> 2024-03-29.
    """
    cadence = Cadence(cadence)
    if cadence == Cadence.DAILY:
        return from_date + timedelta(days=1)
    if cadence == Cadence.WEEKLY:
        return from_date + timedelta(days=7)
    return from_date + relativedelta(months=1)


def week_start(day: date) -> date:
    """Sunday starting the week that contains `day`"""
    # date.weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)
