"""
Building Airtable ``filterByFormula`` expressions from untrusted input.

User-supplied values only ever appear inside a double-quoted string literal.
``escape_formula_string`` makes sure nothing in the value can close that
literal early, so the store compares the value as a plain string and never
parses any of it as formula syntax.
"""

from __future__ import annotations

_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _is_control(ch: str) -> bool:
    code = ord(ch)
    return code < 0x20 or code == 0x7F


def escape_formula_string(value: object) -> str:
    """
    Escape *value* for use inside ``"..."`` in a formula.

    Backslashes and quotes are backslash-escaped, newline/CR/tab become
    their escape sequences and any other control character becomes a
    ``\\uXXXX`` escape, so the literal always denotes exactly *value*.
    Braces, commas, parentheses and the like are inert inside a string
    literal and are passed through unchanged.
    """
    if value is None:
        return ""
    out: list[str] = []
    for ch in str(value):
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif _is_control(ch):
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def field_ref(field: str) -> str:
    """``{Field Name}`` reference.  Field names come from configuration, not users."""
    if not field or "{" in field or "}" in field:
        raise ValueError(f"Unsupported field name for formula: {field!r}")
    return "{" + field + "}"


def field_equals(field: str, value: object) -> str:
    """``{Field} = "value"`` with *value* escaped."""
    return f'{field_ref(field)} = "{escape_formula_string(value)}"'
