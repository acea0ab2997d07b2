"""Path parameter converters.

Built-in converters for route path segments like ``{id:int}``. The
``path`` converter is the catch-all; ``{**name}`` is shorthand for it.
Converters only decide what a segment may look like; handlers receive
the captured string and convert it by annotation.
"""

# Regex each converter's captured text must fully match
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".*",
}
