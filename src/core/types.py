"""Type aliases for dynamic data structures throughout the application.

All types defined here should be JSON-serializable to support logging
and API responses.
"""

# JSON-compatible type that represents any valid JSON value
type JsonValue = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Decoded application/x-www-form-urlencoded body; repeated keys become lists
type FormBody = dict[str, str | list[str]]

# Structured request body as stored by the body parser
type ParsedBodyValue = JsonValue | FormBody
