"""Time tool - returns current time in a timezone"""
from datetime import UTC, datetime, timedelta
from typing import Callable

from agent_tools._lookup import LookupTable

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Whole-hour offsets from UTC, no DST rules beyond the static codes
TIMEZONE_OFFSETS = LookupTable({
    "UTC": 0,
    "GMT": 0,
    "PST": -8,
    "PDT": -7,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "JST": 9,
    "CET": 1,
    "CEST": 2,
    "AEST": 10,
    "AEDT": 11,
})

TOOL_DEFINITION = {
    "name": "get_current_time",
    "description": "Get the current time in a specified timezone.",
    "input_schema": {
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": "The timezone name (e.g., UTC, PST, EST, JST, GMT)"
            }
        },
        "required": ["timezone"]
    }
}


def utc_now() -> datetime:
    """Default clock: the current UTC instant"""
    return datetime.now(UTC)


def get_current_time(timezone: str, clock: Callable[[], datetime] = utc_now) -> str:
    """Describe the current time in timezone

    Args:
        timezone: Timezone code, matched case-insensitively
        clock: Zero-argument callable returning the current UTC instant

    Returns:
        One-line description; unknown codes fall back to UTC
    """
    now = clock()
    code = timezone.upper()
    entry = TIMEZONE_OFFSETS.get(code)

    if entry:
        _, offset = entry
        local_time = now + timedelta(hours=offset)
        return f"Current time in {code}: {local_time.strftime(TIME_FORMAT)}"

    return (
        f"Current time in UTC: {now.strftime(TIME_FORMAT)} "
        f"(timezone '{timezone}' not recognized, showing UTC)"
    )


def execute(tool_input: dict) -> str:
    """Get current time"""
    return get_current_time(tool_input["timezone"])
