from datetime import date

from hrms.core.exceptions import InvalidDateRange


def calculate_leave_days(start_date: date, end_date: date) -> int:
    """Inclusive calendar-day count: the same start and end date is one day."""
    if end_date < start_date:
        raise InvalidDateRange()
    return (end_date - start_date).days + 1
