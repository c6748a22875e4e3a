def format_timestamp(seconds: float) -> str:
    """H:MM:SS from one hour up, M:SS below; seconds are floored."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_timestamp(timestamp: str) -> int:
    """Seconds for an "M:SS" or "H:MM:SS" string."""
    parts = [int(p) for p in timestamp.split(":")]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    raise ValueError(f"Not a timestamp: {timestamp!r}")
