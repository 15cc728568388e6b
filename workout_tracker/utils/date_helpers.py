import datetime

# Monday-first, index 0..6, in the language the workbooks use
_WEEKDAY_LABELS = [
    "Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche",
]


def get_weekday_label(day_index: int) -> str:
    """Return the weekday label (0-indexed, Monday first). E.g. 0 -> 'Lundi'."""
    if 0 <= day_index <= 6:
        return _WEEKDAY_LABELS[day_index]
    raise ValueError(f"Invalid weekday index: {day_index}")


def get_current_week_name(today: datetime.date | None = None) -> str:
    """Return the default label of the week containing ``today``.

    E.g. any day from Mon 13 Oct to Sun 19 Oct -> 'Semaine 13/10-19/10'.
    """
    today = today or datetime.date.today()
    start = today - datetime.timedelta(days=today.weekday())
    end = start + datetime.timedelta(days=6)
    return f"Semaine {start:%d/%m}-{end:%d/%m}"


def get_date_stamp(today: datetime.date | None = None) -> str:
    """ISO date used in generated file names. E.g. '2025-03-14'."""
    return (today or datetime.date.today()).isoformat()
