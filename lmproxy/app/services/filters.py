"""LogicMonitor filter syntax translation.

LogicMonitor filters have the form ``<field><operator><values>``:

- Operators: ``:`` (equal), ``!:`` (not equal), ``>``, ``<``, ``>:``, ``<:``,
  ``~`` (contains), ``!~`` (does not contain)
- String values must be double quoted: ``name:"value"``
- ``|`` separates alternative values: ``status:"active"|"suspend"``
- ``,`` joins conditions with AND, ``||`` with OR

Callers may write loose filters such as ``name:*prod*,hostStatus:alive``;
format_filter adds the quoting the API requires.
"""

import re

_LOGICAL_SPLIT = re.compile(r"(\s*(?:\|\||,)\s*)")
_LOGICAL_TOKEN = re.compile(r"^\s*(?:\|\||,)\s*$")
_CONDITION = re.compile(r"^([^:!><~]+)([:!><~]+)(.*)$")
_INTEGER = re.compile(r"^\d+$")
_DECIMAL = re.compile(r"^\d+\.\d+$")


def _is_quoted(value: str) -> bool:
    return len(value) >= 2 and value.startswith('"') and value.endswith('"')


def needs_quoting(value: str) -> bool:
    """Every string value is quoted; numbers and booleans stay bare."""
    if _is_quoted(value):
        return False
    if _INTEGER.match(value) or _DECIMAL.match(value):
        return False
    return value not in ("true", "false")


def _quote(value: str) -> str:
    return f'"{value}"' if needs_quoting(value) else value


def format_condition(condition: str) -> str:
    """Quote the value part of one ``property operator value`` condition."""
    match = _CONDITION.match(condition)
    if not match:
        return condition

    prop, operator, value = (part.strip() for part in match.groups())

    if "|" in value and not value.startswith('"'):
        values = "|".join(_quote(v.strip()) for v in value.split("|"))
        return f"{prop}{operator}{values}"

    return f"{prop}{operator}{_quote(value)}"


def format_filter(filter_text: str) -> str:
    """Translate a loose filter string into LogicMonitor's quoted syntax.

    Example:
        >>> format_filter("name:web*,hostStatus:alive")
        'name:"web*",hostStatus:"alive"'
    """
    if not filter_text:
        return filter_text

    parts = _LOGICAL_SPLIT.split(filter_text)
    return "".join(
        part if _LOGICAL_TOKEN.match(part) else format_condition(part.strip())
        for part in parts
    )


FILTER_EXAMPLES = {
    "devices": [
        'displayName:"*prod*"',
        'hostStatus:"alive"',
        'displayName:"web*",hostStatus:"alive"',
        'name:"web*"||name:"app*"',
        "id>:100",
        "disableAlerting:false",
        'hostStatus:"active"|"pending"',
    ],
    "deviceGroups": [
        'name:"*servers*"',
        "parentId:1",
        'name:"production*"',
        'name~"test"',
    ],
}
