"""
Typed row filters for dependent-table lookups.

Rows in checkins, geographic_checkins, ai_conversations, ... reference their
owner through ``user_id``, which older writes filled with the auth id and
newer ones with the public users.id. ``build_user_filter`` produces one
predicate matching either, and ``apply_predicate`` pushes it to PostgREST as
a single ``or=(...)`` so both keys are counted in the same request.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

_COLUMN_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
# Characters with meaning inside a PostgREST logic tree
_RESERVED = set(',.:()"\\ ')


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any

    def __post_init__(self):
        if not _COLUMN_RE.fullmatch(self.column or ""):
            raise ValueError(f"Invalid column name: {self.column!r}")
        if self.value is None:
            raise ValueError("Eq does not accept None; use IS NULL semantics explicitly")


@dataclass(frozen=True)
class Or:
    predicates: Tuple["Predicate", ...]

    def __post_init__(self):
        object.__setattr__(self, "predicates", tuple(self.predicates))
        if not self.predicates:
            raise ValueError("Or requires at least one predicate")


Predicate = Union[Eq, Or]


def build_user_filter(identity, column: str = "user_id") -> Predicate:
    """Match rows owned by identity under either its profile id or auth id."""
    profile_id = identity.profile_id
    auth_id = identity.auth_id
    if auth_id and auth_id != profile_id:
        return Or((Eq(column, profile_id), Eq(column, auth_id)))
    return Eq(column, profile_id)


def quote_value(value: Any) -> str:
    text = str(value)
    if not any(ch in _RESERVED for ch in text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def to_postgrest(predicate: Predicate) -> str:
    """Render predicate in PostgREST logic-tree syntax (body of or=(...))."""
    if isinstance(predicate, Eq):
        return f"{predicate.column}.eq.{quote_value(predicate.value)}"
    if isinstance(predicate, Or):
        parts = []
        for p in predicate.predicates:
            if isinstance(p, Or):
                parts.append(f"or({to_postgrest(p)})")
            else:
                parts.append(to_postgrest(p))
        return ",".join(parts)
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


def apply_predicate(query, predicate: Predicate):
    """Attach predicate to a supabase/postgrest filter builder and return it."""
    if isinstance(predicate, Eq):
        return query.eq(predicate.column, predicate.value)
    if isinstance(predicate, Or):
        if len(predicate.predicates) == 1:
            return apply_predicate(query, predicate.predicates[0])
        return query.or_(to_postgrest(predicate))
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


def matches(predicate: Predicate, row: Dict[str, Any]) -> bool:
    if isinstance(predicate, Eq):
        value = row.get(predicate.column)
        return value is not None and str(value) == str(predicate.value)
    if isinstance(predicate, Or):
        return any(matches(p, row) for p in predicate.predicates)
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")
