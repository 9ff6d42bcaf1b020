"""
Query Translator

Turns the raw query string of a listing request into MongoDB criteria and
cursor options:

    category=fantasy&price>=10&sort=-price&skip=20&limit=10

becomes

    criteria = {"category": "fantasy", "price": {"$gte": 10}}
    sort = [("price", -1)], skip = 20, limit = 10

and builds the first/prev/next/last pagination links for the result.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote_plus

from pydantic import BaseModel, Field

from BookstoreAPI.errors.exceptions import ValidationError

RESERVED_KEYS = ("fields", "sort", "skip", "limit")

COMPARISON_OPERATORS = {
    "=": None,
    "!=": "$ne",
    ">": "$gt",
    ">=": "$gte",
    "<": "$lt",
    "<=": "$lte",
}

PAIR_PATTERN = re.compile(r"^(?P<key>[^!=<>]+)(?P<op>!=|>=|<=|=|>|<)(?P<value>.*)$")
BARE_KEY_PATTERN = re.compile(r"^(?P<negate>!?)(?P<key>[^!=<>]+)$")
REGEX_VALUE_PATTERN = re.compile(r"^/(?P<pattern>.*)/(?P<flags>[imxs]*)$")
INT_PATTERN = re.compile(r"^-?(0|[1-9]\d*)$")
FLOAT_PATTERN = re.compile(r"^-?(0|[1-9]\d*)?\.\d+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$")


class MongoQuery(BaseModel):
    """
    Result of translating a query string.
    """
    criteria: Dict[str, Any] = Field(default_factory=dict)
    projection: Dict[str, int] = Field(default_factory=dict)
    sort: List[Tuple[str, int]] = Field(default_factory=list)
    skip: int = 0
    limit: int
    # Raw "key=value" pairs other than skip/limit, kept to rebuild page links
    passthrough: List[str] = Field(default_factory=list)

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)

    def links(self, url: str, total: int) -> Dict[str, str]:
        """
        Build pagination links for a result of `total` matching documents.

        "prev" is omitted on the first page and "next" on the last one.
        """
        last_skip = (self.total_pages(total) - 1) * self.limit if total > 0 else 0

        links = {"first": self._page_url(url, 0)}
        if self.skip > 0:
            links["prev"] = self._page_url(url, max(self.skip - self.limit, 0))
        if self.skip + self.limit < total:
            links["next"] = self._page_url(url, self.skip + self.limit)
        links["last"] = self._page_url(url, last_skip)
        return links

    def _page_url(self, url: str, skip: int) -> str:
        pairs = self.passthrough + [f"skip={skip}", f"limit={self.limit}"]
        return f"{url}?{'&'.join(pairs)}"


def typed_value(raw: str) -> Any:
    """Convert a query string value to a number, boolean, None or datetime when it looks like one."""
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None
    if INT_PATTERN.match(raw):
        return int(raw)
    if FLOAT_PATTERN.match(raw):
        return float(raw)
    if DATE_PATTERN.match(raw):
        try:
            return datetime.fromisoformat(raw.replace('Z', '+00:00'))
        except ValueError:
            return raw
    return raw


def _condition(op: str, raw_value: str) -> Any:
    regex = REGEX_VALUE_PATTERN.match(raw_value)
    if op in ("=", "!=") and regex:
        condition = {"$regex": regex.group("pattern")}
        if regex.group("flags"):
            condition["$options"] = regex.group("flags")
        return condition if op == "=" else {"$not": condition}

    if op in ("=", "!=") and "," in raw_value:
        values = [typed_value(value) for value in raw_value.split(",")]
        return {"$in": values} if op == "=" else {"$nin": values}

    value = typed_value(raw_value)
    if op == "=":
        return value
    return {COMPARISON_OPERATORS[op]: value}


def _merge(criteria: Dict[str, Any], key: str, condition: Any):
    existing = criteria.get(key)
    if isinstance(existing, dict) and isinstance(condition, dict) \
            and all(k.startswith("$") for k in existing) and all(k.startswith("$") for k in condition):
        existing.update(condition)
    else:
        criteria[key] = condition


def _parse_non_negative_int(name: str, raw: str) -> int:
    if not INT_PATTERN.match(raw) or int(raw) < 0:
        raise ValidationError(
            f"Invalid query parameter {name}",
            errors=[{"field": f"query.{name}", "message": "must be a non-negative integer"}]
        )
    return int(raw)


def _parse_sort(raw: str) -> List[Tuple[str, int]]:
    sort = []
    for item in raw.split(","):
        item = item.strip()
        direction = -1 if item.startswith("-") else 1
        name = item.lstrip("+-")
        if not name:
            raise ValidationError(
                "Invalid query parameter sort",
                errors=[{"field": "query.sort", "message": "empty sort field"}]
            )
        sort.append((name, direction))
    return sort


def _parse_fields(raw: str) -> Dict[str, int]:
    fields = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if item.startswith("-"):
            fields[item[1:]] = 0
        else:
            fields[item.lstrip("+")] = 1

    # MongoDB rejects projections mixing inclusion and exclusion, _id aside
    modes = {value for name, value in fields.items() if name != "_id"}
    if len(modes) > 1:
        raise ValidationError(
            "Invalid query parameter fields",
            errors=[{"field": "query.fields", "message": "cannot mix included and excluded fields"}]
        )
    return fields


def translate(query_string: str, default_limit: int, max_limit: int) -> MongoQuery:
    """
    Translate a raw query string into a MongoQuery.

    Args:
        query_string: The undecoded query string, without the leading "?"
        default_limit: Page size used when no limit is given
        max_limit: Upper bound applied to the requested limit

    Raises:
        ValidationError: If skip, limit, sort or fields are malformed
    """
    criteria: Dict[str, Any] = {}
    fields: Dict[str, int] = {}
    sort: List[Tuple[str, int]] = []
    skip = 0
    limit: Optional[int] = None
    passthrough: List[str] = []

    for raw_pair in filter(None, query_string.split("&")):
        pair = unquote_plus(raw_pair)

        match = PAIR_PATTERN.match(pair)
        if match is None:
            bare = BARE_KEY_PATTERN.match(pair)
            if bare is None:
                raise ValidationError(
                    "Invalid query string",
                    errors=[{"field": "query", "message": f"cannot parse '{pair}'"}]
                )
            criteria[bare.group("key")] = {"$exists": not bare.group("negate")}
            passthrough.append(raw_pair)
            continue

        key, op, value = match.group("key"), match.group("op"), match.group("value")

        if op == "=" and key in RESERVED_KEYS:
            if key == "skip":
                skip = _parse_non_negative_int("skip", value)
                continue
            if key == "limit":
                limit = _parse_non_negative_int("limit", value)
                if limit == 0:
                    raise ValidationError(
                        "Invalid query parameter limit",
                        errors=[{"field": "query.limit", "message": "must be greater than zero"}]
                    )
                continue
            if key == "sort":
                sort = _parse_sort(value)
            else:
                fields = _parse_fields(value)
            passthrough.append(raw_pair)
            continue

        _merge(criteria, key, _condition(op, value))
        passthrough.append(raw_pair)

    return MongoQuery(
        criteria=criteria,
        projection=fields,
        sort=sort,
        skip=skip,
        limit=min(limit or default_limit, max_limit),
        passthrough=passthrough
    )
