"""
Display formatting for distances and durations
"""


def format_duration(seconds: float) -> str:
    """Format a duration as '1h 5min' or '12min'"""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60

    if hours > 0:
        return f"{hours}h {minutes}min"
    return f"{minutes}min"


def format_distance(meters: float) -> str:
    """Format a distance as '1.2 km' or '850 m'"""
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{int(meters)} m"


def format_route_info(distance: float, duration: float) -> str:
    """Combined distance and duration label, e.g. '1.2 km • 12min'"""
    return f"{format_distance(distance)} • {format_duration(duration)}"
