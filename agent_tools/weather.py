"""Weather tool - gets current weather for a location (mock)"""
from agent_tools._lookup import LookupTable

# Simulated weather data: condition and temperature in Celsius
WEATHER_DATA = LookupTable({
    "Seattle": ("Rainy", 12),
    "London": ("Cloudy", 15),
    "Paris": ("Sunny", 22),
    "Tokyo": ("Clear", 18),
    "New York": ("Partly Cloudy", 20),
    "Sydney": ("Warm", 28),
})

# Tool definition
TOOL_DEFINITION = {
    "name": "get_weather",
    "description": "Get the current weather for a specified location.",
    "input_schema": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "The city name to get weather for"
            }
        },
        "required": ["location"]
    }
}


def celsius_to_fahrenheit(temp_c: int) -> int:
    """Integer conversion, the division truncates toward zero (12 -> 53)"""
    scaled = temp_c * 9
    quotient = abs(scaled) // 5
    if scaled < 0:
        quotient = -quotient
    return quotient + 32


def get_weather(location: str) -> str:
    """Describe the weather for location, echoing the location as given"""
    entry = WEATHER_DATA.get(location)

    if entry:
        _, (condition, temp_c) = entry
        return (
            f"Weather in {location}: {condition}, "
            f"{temp_c}°C ({celsius_to_fahrenheit(temp_c)}°F)"
        )

    return f"Weather in {location}: Mild conditions, approximately 18°C (64°F)"


# Tool executor
def execute(tool_input: dict) -> str:
    """Get weather for a location (mock)"""
    return get_weather(tool_input["location"])
