"""
Helpers that turn durations and file sizes into short, human-readable strings
for log lines and export reports.
"""

from datetime import timedelta


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta as "HH:MM:SS".

    Sub-second precision is dropped; anything that is not a timedelta is shown
    as "00:00:00".
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    hours, remainder = divmod(int(td_object.total_seconds()), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: float) -> str:
    """
    Converts a byte count to a string with a binary unit, e.g. 1536 -> "1.50 KB".

    Whole values drop their decimals ("2 MB"), plain bytes are always integers.
    """
    size = max(float(size_bytes), 0.0)
    if size < 1024:
        return f"{int(size)} B"

    for unit in ("KB", "MB", "GB", "TB"):
        size /= 1024.0
        if size < 1024:
            break
    else:
        unit = "PB"
        size /= 1024.0
    return f"{size:.2f} {unit}".replace(".00 ", " ")
