"""Normalization and validation of model-generated trace queries.

Fields are checked in a fixed order because the route check on ``tags``
needs the already-validated ``service``. What happens to an invalid field is
declared in ``FIELD_POLICIES``: a bad time window is a soft hint and gets
corrected, a bad duration bound is dropped, and a bad service name rejects
the whole translation.
"""

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import InvalidServiceError
from .prompt import CatalogView
from .schema import DEFAULT_LIMIT, StructuredQuery

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = "1h"
HTTP_ROUTE_TAG = "http.route"

LOOKBACK_RE = re.compile(r"\d+[hdms]", re.ASCII)
DURATION_RE = re.compile(r"\d+(\.\d+)?[hdms]", re.ASCII)
TAG_PAIR_RE = re.compile(r"^[a-zA-Z0-9._-]+=")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)

QUERY_FIELDS = (
    "service",
    "operation",
    "tags",
    "lookback",
    "limit",
    "minDuration",
    "maxDuration",
)


class OnInvalid(str, Enum):
    """What the validator does with a field that fails its check."""

    CORRECT = "correct"  # replace with the policy default
    DROP = "drop"  # remove the field
    REJECT = "reject"  # fail the translation
    FILTER = "filter"  # keep the valid parts, drop the field if none remain


@dataclass(frozen=True)
class FieldPolicy:
    field: str
    on_invalid: OnInvalid
    default: Any = None
    # Only the limit has a value when the model leaves it out.
    default_when_absent: bool = False


FIELD_POLICIES: tuple[FieldPolicy, ...] = (
    FieldPolicy("limit", OnInvalid.CORRECT, DEFAULT_LIMIT, default_when_absent=True),
    FieldPolicy("service", OnInvalid.REJECT),
    FieldPolicy("lookback", OnInvalid.CORRECT, DEFAULT_LOOKBACK),
    FieldPolicy("minDuration", OnInvalid.DROP),
    FieldPolicy("maxDuration", OnInvalid.DROP),
    FieldPolicy("tags", OnInvalid.FILTER),
)

_INVALID = object()


def coerce_limit(value: Any) -> int | None:
    """Return ``value`` as a positive int, or None if it cannot be one.

    Strings contribute their leading digits ("50 traces" -> 50); floats are
    truncated; booleans are not counts.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if not match:
            return None
        number = int(match.group(1))
    else:
        return None
    return number if number > 0 else None


def is_valid_lookback(value: Any) -> bool:
    return isinstance(value, str) and LOOKBACK_RE.fullmatch(value) is not None


def is_valid_duration(value: Any) -> bool:
    return isinstance(value, str) and DURATION_RE.fullmatch(value) is not None


def is_valid_tag_pair(pair: str) -> bool:
    parts = pair.split("=")
    key = parts[0]
    value = parts[1] if len(parts) > 1 else ""
    return bool(key and value and TAG_PAIR_RE.match(pair))


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


class QueryValidator:
    """Turns a parsed candidate dict into a fully validated StructuredQuery.

    Args:
        route_validation: When True, routes travel as ``http.route`` tags and
            each one must be a known route of the query's service; a bare
            ``operation`` from the model is folded into such a tag. When
            False, ``operation`` is passed through untouched.
    """

    def __init__(self, route_validation: bool = True) -> None:
        self.route_validation = route_validation
        self._checks: dict[str, Callable[[Any, dict[str, Any], CatalogView], Any]] = {
            "limit": self._check_limit,
            "service": self._check_service,
            "lookback": self._check_lookback,
            "minDuration": self._check_duration,
            "maxDuration": self._check_duration,
            "tags": self._check_tags,
        }

    def normalize(
        self,
        candidate: dict[str, Any],
        catalog: CatalogView,
        selected_service: str | None = None,
    ) -> StructuredQuery:
        """Apply every field policy in order and build the final query.

        Raises:
            InvalidServiceError: If the service is not in the catalog.
        """
        fields = self._prepare(candidate, selected_service)

        for policy in FIELD_POLICIES:
            name = policy.field
            if name not in fields:
                if policy.default_when_absent:
                    fields[name] = policy.default
                continue

            result = self._checks[name](fields[name], fields, catalog)
            if result is not _INVALID:
                if result is None:
                    del fields[name]
                else:
                    fields[name] = result
                continue

            self._apply_invalid(policy, fields, catalog)

        return StructuredQuery.model_validate(fields)

    def _apply_invalid(
        self, policy: FieldPolicy, fields: dict[str, Any], catalog: CatalogView
    ) -> None:
        name = policy.field
        value = fields[name]
        if policy.on_invalid is OnInvalid.REJECT:
            raise InvalidServiceError(value, sorted(catalog.services()))
        if policy.on_invalid is OnInvalid.CORRECT:
            logger.debug(f"Replacing invalid {name}={value!r} with {policy.default!r}")
            fields[name] = policy.default
        else:
            logger.debug(f"Dropping invalid {name}={value!r}")
            del fields[name]

    def _prepare(
        self, candidate: dict[str, Any], selected_service: str | None
    ) -> dict[str, Any]:
        unknown = sorted(k for k in candidate if k not in QUERY_FIELDS)
        if unknown:
            logger.debug(f"Ignoring unknown query fields: {unknown}")

        fields = {
            k: v
            for k, v in candidate.items()
            if k in QUERY_FIELDS and not _is_absent(v)
        }

        if selected_service and "service" not in fields:
            fields["service"] = selected_service

        operation = fields.pop("operation", None)
        if operation is not None and not isinstance(operation, str):
            logger.debug(f"Dropping non-string operation {operation!r}")
            operation = None

        if operation is not None:
            if self.route_validation:
                tags = fields.get("tags")
                route_tag = f"{HTTP_ROUTE_TAG}={operation}"
                fields["tags"] = (
                    f"{tags} {route_tag}" if isinstance(tags, str) else route_tag
                )
            else:
                fields["operation"] = operation

        return fields

    # Each check returns the normalized value, None to drop the field,
    # or _INVALID to hand the field to its policy.

    def _check_limit(
        self, value: Any, fields: dict[str, Any], catalog: CatalogView
    ) -> Any:
        limit = coerce_limit(value)
        return _INVALID if limit is None else limit

    def _check_service(
        self, value: Any, fields: dict[str, Any], catalog: CatalogView
    ) -> Any:
        if isinstance(value, str) and value in catalog.services():
            return value
        return _INVALID

    def _check_lookback(
        self, value: Any, fields: dict[str, Any], catalog: CatalogView
    ) -> Any:
        return value if is_valid_lookback(value) else _INVALID

    def _check_duration(
        self, value: Any, fields: dict[str, Any], catalog: CatalogView
    ) -> Any:
        return value if is_valid_duration(value) else _INVALID

    def _check_tags(
        self, value: Any, fields: dict[str, Any], catalog: CatalogView
    ) -> Any:
        if not isinstance(value, str):
            return _INVALID

        routes = catalog.routes_of(fields.get("service"))
        kept = []
        for pair in value.split():
            if not is_valid_tag_pair(pair):
                logger.debug(f"Dropping malformed tag {pair!r}")
                continue
            key, _, tag_value = pair.partition("=")
            is_route = self.route_validation and key == HTTP_ROUTE_TAG
            if is_route and tag_value not in routes:
                logger.debug(
                    f"Dropping unknown route {tag_value!r} for service "
                    f"{fields.get('service')!r}"
                )
                continue
            kept.append(pair)

        return " ".join(kept) or None
