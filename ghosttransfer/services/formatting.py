"""Display helpers."""

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size: int | None) -> str:
    """Human readable file size, e.g. ``1.5 KB`` or ``120 MB``."""
    if size is None:
        return ""
    value = float(max(size, 0))
    i = 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    decimals = 0 if value >= 100 or i == 0 else 1
    return f"{value:.{decimals}f} {SIZE_UNITS[i]}"
