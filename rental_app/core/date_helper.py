from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def whole_months_between(start_date: date, end_date: date) -> int:
    # calendar months only; the day of month is ignored
    delta = relativedelta(end_date.replace(day=1), start_date.replace(day=1))
    return delta.years * 12 + delta.months


def days_ago(days: int, now: datetime | None = None) -> datetime:
    return (now or utc_now()) - relativedelta(days=days)
