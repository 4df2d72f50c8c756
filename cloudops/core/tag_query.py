"""Tag query language for automation rules.

A query is a conjunction of ``key=value`` clauses joined by ``AND``::

    type=vm AND tags.env="dev" AND region=us-east-1

Keys ``type``, ``provider`` and ``region`` read the resource column of the same
name, ``tags.<name>`` reads a tag, and any other key reads the resource field
as written. Comparison is case-insensitive string equality and a missing value
reads as the empty string. There is no OR, NOT, grouping or escaping.

Parsing is permissive: a clause without ``=`` matches every resource.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from cloudops.schemas.resource import Resource

CLAUSE_SEPARATOR = re.compile(r"(?:^|\s+)AND(?:\s+|$)", re.IGNORECASE)
SURROUNDING_QUOTE = re.compile(r"^['\"]|['\"]$")

COLUMN_KEYS = ("type", "provider", "region")
TAG_PREFIX = "tags."


@dataclass(frozen=True)
class Clause:
    """A single ``key=value`` condition."""

    key: str
    value: str
    has_operator: bool = True


def parse_query(query: str | None) -> list[Clause]:
    """Split a query into clauses; an empty query yields no clauses."""
    if not query:
        return []

    clauses = []
    for raw in CLAUSE_SEPARATOR.split(str(query)):
        text = raw.strip()
        if "=" not in text:
            clauses.append(Clause(key=text, value="", has_operator=False))
            continue
        # Anything after a second "=" is dropped.
        key, value = text.split("=")[:2]
        value = SURROUNDING_QUOTE.sub("", value.strip())
        clauses.append(Clause(key=key.strip(), value=value))
    return clauses


def _as_text(value: Any) -> str:
    if value is None or value is False or value == "":
        return ""
    if isinstance(value, (int, float)) and value == 0:
        return ""
    if value is True:
        return "true"
    # JSON 5.0 and 5 read the same
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _lookup(resource: Resource | dict[str, Any], key: str) -> Any:
    if isinstance(resource, Resource):
        if key.lower().startswith(TAG_PREFIX):
            return resource.tags.get(key[len(TAG_PREFIX):])
        if key.lower() in COLUMN_KEYS:
            return resource.field(key.lower())
        return resource.field(key)

    if key.lower().startswith(TAG_PREFIX):
        tags = resource.get("tags") or {}
        return tags.get(key[len(TAG_PREFIX):]) if isinstance(tags, dict) else None
    if key.lower() in COLUMN_KEYS:
        return resource.get(key.lower())
    return resource.get(key)


def clause_matches(resource: Resource | dict[str, Any], clause: Clause) -> bool:
    """Evaluate one clause against a resource."""
    if not clause.has_operator:
        return True
    actual = _as_text(_lookup(resource, clause.key))
    return actual.lower() == clause.value.lower()


def matches(resource: Resource | dict[str, Any], query: str | None) -> bool:
    """True if the resource satisfies every clause of the query."""
    return all(clause_matches(resource, clause) for clause in parse_query(query))


def filter_resources(resources: Iterable[Resource], query: str | None) -> list[Resource]:
    """Resources satisfying the query, in input order."""
    clauses = parse_query(query)
    return [r for r in resources if all(clause_matches(r, c) for c in clauses)]
