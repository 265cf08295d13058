"""
Named business-logic policies.

A policy checks one field of a record against the rest of the record and
returns True (holds), False (violated) or None (cannot be judged on a single
record; treated as passing). Comparison policies are parsed from their name:

    must_be_less_than_<field>       value <  record[field]
    must_not_exceed_<field>         value <= record[field]
    must_be_greater_than_<field>    value >  record[field]
    must_be_at_least_<field>        value >= record[field]
"""

from __future__ import annotations

import operator
import re
import threading
from typing import Any, Callable, Mapping

PolicyCheck = Callable[[str, Mapping[str, Any]], "bool | None"]

COMPARISON_POLICIES: dict[str, Callable[[Any, Any], bool]] = {
    "must_be_less_than": operator.lt,
    "must_not_exceed": operator.le,
    "must_be_greater_than": operator.gt,
    "must_be_at_least": operator.ge,
}

_COMPARISON_PATTERN = re.compile(
    r"^(?P<policy>" + "|".join(COMPARISON_POLICIES) + r")_(?P<other>\w+)$"
)


class PolicyRegistry:
    """Resolves policy names to checks.

    Comparison policies are always available; additional named policies can
    be registered per registry.
    """

    def __init__(self, policies: dict[str, PolicyCheck] | None = None):
        self._policies: dict[str, PolicyCheck] = dict(policies or {})
        self._lock = threading.RLock()

    def register(self, name: str, check: PolicyCheck) -> None:
        with self._lock:
            self._policies[name] = check

    def is_known(self, name: str) -> bool:
        with self._lock:
            if name in self._policies:
                return True
        return _COMPARISON_PATTERN.match(name) is not None

    def evaluate(self, name: str, field: str, record: Mapping[str, Any]) -> bool | None:
        """Evaluate a policy for one field.

        Returns:
            True or False for a decided check; None when the policy is
            unknown or its operands are missing or not comparable.
        """
        with self._lock:
            custom = self._policies.get(name)
        if custom is not None:
            return custom(field, record)

        match = _COMPARISON_PATTERN.match(name)
        if match is None:
            return None

        other = match.group("other")
        if field not in record or other not in record:
            return None
        compare = COMPARISON_POLICIES[match.group("policy")]
        try:
            return bool(compare(record[field], record[other]))
        except TypeError:
            return None
