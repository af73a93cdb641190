"""Date manipulation utilities"""

from datetime import date, timedelta
from dateutil.relativedelta import relativedelta


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the last day of shorter months (Jan 31 + 1 = Feb 29)"""
    return from_date + relativedelta(months=months)


def days_past(due_date: date, as_of: date) -> int:
    """Days elapsed since due_date; negative when due_date is in the future"""
    return (as_of - due_date).days
