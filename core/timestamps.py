from datetime import datetime, date, time, timezone


def to_wire_timestamp(value: datetime) -> datetime:
    """Convert an in-memory datetime to the form BSON stores: UTC, millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def from_wire_timestamp(value: datetime) -> datetime:
    # Drivers without tz_aware hand back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def log_id_for(log_date: date) -> str:
    return log_date.strftime("%Y-%m-%d")


def log_datetime_for(log_date: date) -> datetime:
    """Noon UTC keeps the calendar day stable across the client's time zones."""
    return datetime.combine(log_date, time(12, 0), tzinfo=timezone.utc)
