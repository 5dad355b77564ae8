"""Tool registry for the weather/time agent

Public modules in this package that define TOOL_DEFINITION and execute() are
registered as tools. Private modules (leading underscore) are helpers.

execute_tool() is the only entry point the agent loop uses: it never raises,
malformed calls come back as a ToolResult flagged is_error so the model can
correct its arguments.
"""
import importlib
import pkgutil
from pathlib import Path
from typing import NamedTuple

JSON_TYPES = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "object": dict,
    "array": list,
}


class ToolResult(NamedTuple):
    content: str
    is_error: bool = False


def _discover():
    modules = {}
    for _, module_name, _ in pkgutil.iter_modules([str(Path(__file__).parent)]):
        if module_name.startswith('_'):
            continue
        module = importlib.import_module(f'.{module_name}', package=__name__)
        if hasattr(module, 'TOOL_DEFINITION') and hasattr(module, 'execute'):
            modules[module.TOOL_DEFINITION['name']] = module
    return modules


_TOOLS = _discover()

TOOL_DEFINITIONS = [module.TOOL_DEFINITION for module in _TOOLS.values()]
TOOL_EXECUTORS = {name: module.execute for name, module in _TOOLS.items()}


def validate_arguments(tool_definition: dict, tool_input) -> str | None:
    """Check tool_input against the declared schema, return a problem or None"""
    if not isinstance(tool_input, dict):
        return f"arguments must be an object, got {type(tool_input).__name__}"

    schema = tool_definition["input_schema"]
    for name in schema.get("required", []):
        if name not in tool_input:
            return f"missing required argument '{name}'"

    for name, prop in schema.get("properties", {}).items():
        if name not in tool_input:
            continue
        expected = JSON_TYPES.get(prop.get("type"))
        value = tool_input[name]
        # bool is an int subclass, never accept it for numeric fields
        if expected and (not isinstance(value, expected) or
                         (isinstance(value, bool) and prop["type"] != "boolean")):
            return (
                f"argument '{name}' must be a {prop['type']}, "
                f"got {type(value).__name__}"
            )

    return None


def execute_tool(tool_name: str, tool_input) -> ToolResult:
    """Run a registered tool; unknown names and bad arguments become errors"""
    module = _TOOLS.get(tool_name)
    if module is None:
        return ToolResult(f"Tool not found: {tool_name}", is_error=True)

    problem = validate_arguments(module.TOOL_DEFINITION, tool_input)
    if problem:
        return ToolResult(f"Invalid arguments for {tool_name}: {problem}", is_error=True)

    try:
        return ToolResult(module.execute(tool_input))
    except Exception as exc:
        return ToolResult(f"{tool_name} failed: {exc!r}", is_error=True)
