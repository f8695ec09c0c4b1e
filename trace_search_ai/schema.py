"""Pydantic schemas for the trace search translator.

This module defines:
- StructuredQuery, the validated translation result handed to the trace backend
- TranslationContext, the optional hint supplied by the search form
- Request/response payloads for the HTTP API
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LIMIT = 100


class StructuredQuery(BaseModel):
    """A trace search query in the shape the trace backend's search API expects.

    Instances are only ever built by the validator, so every field has already
    passed its format rule. Absent fields stay ``None`` and are omitted on
    serialization.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    service: str | None = Field(default=None, description="Known service name")
    operation: str | None = Field(
        default=None, description="Exact operation or route name"
    )
    tags: str | None = Field(
        default=None, description="logfmt key=value pairs separated by spaces"
    )
    lookback: str | None = Field(
        default=None, description="Time window relative to now, e.g. 1h, 7d"
    )
    limit: int = Field(default=DEFAULT_LIMIT, gt=0, description="Max result count")
    min_duration: str | None = Field(
        default=None, alias="minDuration", description="Lower duration bound"
    )
    max_duration: str | None = Field(
        default=None, alias="maxDuration", description="Upper duration bound"
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase names, omitting absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def tag_pairs(self) -> list[tuple[str, str]]:
        """Split the logfmt tags into (key, value) pairs, preserving duplicates."""
        if not self.tags:
            return []
        pairs = []
        for pair in self.tags.split():
            key, _, value = pair.partition("=")
            pairs.append((key, value))
        return pairs

    def to_search_params(self) -> dict[str, Any]:
        """Render the query as trace search form parameters.

        The search API takes tags as a JSON object rather than logfmt. When a
        key repeats, the last value wins in this rendering.
        """
        params = self.to_wire()
        if self.tags:
            params["tags"] = json.dumps(dict(self.tag_pairs()), separators=(",", ":"))
        return params


class TranslationContext(BaseModel):
    """Optional caller hint narrowing a translation to one service."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    selected_service: str | None = Field(
        default=None,
        alias="selectedService",
        description="Service pre-selected in the search form",
    )


# =============================================================================
# HTTP API payloads
# =============================================================================


class TranslateRequest(BaseModel):
    """Body of POST /api/translate."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: str = Field(description="Natural-language description of the search")
    selected_service: str | None = Field(default=None, alias="selectedService")

    def context(self) -> TranslationContext | None:
        if not self.selected_service:
            return None
        return TranslationContext(selected_service=self.selected_service)


class TranslateResponse(BaseModel):
    """Body returned by POST /api/translate."""

    model_config = ConfigDict(populate_by_name=True)

    query: dict[str, Any] = Field(description="The structured query, wire format")
    search_params: dict[str, Any] = Field(alias="searchParams")
