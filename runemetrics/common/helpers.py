import re
from datetime import datetime
from typing import Optional


def format_clock(value: Optional[datetime]) -> str:
    if value is None:
        return "--:--:--"
    return value.astimezone().strftime("%H:%M:%S")


def format_number(value: int) -> str:
    return f"{value:,}"


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return "max"
    return f"{value:.1f}"


def normalize_activity_text(input: str) -> str:
    """Collapses the repeated whitespace RuneMetrics puts in feed entries."""
    return re.sub(r"\s{2,}", " ", input).strip()
