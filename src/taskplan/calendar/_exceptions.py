class CalendarError(ValueError):
    """Raised for calendar input that cannot be interpreted (dates, timezones)."""
