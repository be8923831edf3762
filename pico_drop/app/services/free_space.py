BINARY_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


def format_binary_size(size: int) -> str:
    """Render a byte count with 1024-based units, e.g. ``512.00 MiB``."""
    if size < 0:
        raise ValueError("Size must not be negative")
    if size < 1024:
        return f"{size} B"

    value = float(size)
    for unit in BINARY_UNITS:
        value /= 1024
        if value < 1024 or unit == BINARY_UNITS[-1]:
            return f"{value:.2f} {unit}"
