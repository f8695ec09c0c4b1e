"""Prompt templates and rendering for query translation.

The templates are fixed assets: they describe the output schema and carry a
handful of worked examples so the model answers with a bare JSON object.
Only two placeholders exist, ``{services}`` and ``{query}``.
"""

import re
from typing import Protocol

SERVICES_PLACEHOLDER = "{services}"
QUERY_PLACEHOLDER = "{query}"

_PLACEHOLDER_RE = re.compile(r"\{services\}|\{query\}")

_SCHEMA_FIELDS = """\
- **Fields**:
  - service: string (must be one of the available services listed below)
{operation_line}\
  - tags: string (logfmt format, e.g., "error=true http.status_code=500 http.method=GET")
  - lookback: string (time window, e.g., "1h", "24h", "7d")
  - limit: number (integer, e.g., 100, 20)
  - minDuration: string (e.g., "100ms", "1s", "2m")
  - maxDuration: string (e.g., "5s", "1m", "10m")
"""

_COMMON_EXAMPLES = """\
#### Input: "What are the slowest traces for the payment service in the last 2 hours?"
#### Output:
{
  "service": "payment",
  "lookback": "2h",
  "minDuration": "1s",
  "limit": 100
}

#### Input: "Find traces for the order service that failed with status 500 in the last 1 hour."
#### Output:
{
  "service": "order",
  "tags": "error=true http.status_code=500",
  "lookback": "1h",
  "limit": 100
}

#### Input: "What traces in the payment service took between 500ms and 2s in the last 3 days?"
#### Output:
{
  "service": "payment",
  "lookback": "3d",
  "minDuration": "500ms",
  "maxDuration": "2s",
  "limit": 100
}

#### Input: "Show traces for the checkout service with GET requests that failed yesterday."
#### Output:
{
  "service": "checkout",
  "tags": "http.method=GET error=true",
  "lookback": "24h",
  "limit": 100
}

#### Input: "Give me the 50 slowest traces for the boatcruize-backend service."
#### Output:
{
  "service": "boatcruize-backend",
  "minDuration": "1s",
  "limit": 50
}
"""

_HEADER = """
### Instructions:
Your task is to convert a natural language question into a Jaeger trace search query, formatted as a JSON object that adheres to the following interface:
"""

_RULES = """
### Rules:
- Analyze the question carefully, word by word, to map terms to the correct fields.
- Use only the fields listed above; do not invent new fields like "outcome" or "status".
- For tags, use common HTTP or error-related keys (e.g., "error", "http.status_code", "http.method", "http.route") when applicable.
- If a term doesn't clearly map to a field, omit it or include it in "tags" if it fits logfmt format.
- If no limit is specified, default to 100.
- The service field MUST be one of the available services listed above.
{route_rule}\
- Respond **only with a valid JSON object**, with no explanations, comments, or extra text.
"""

_FOOTER = """
### Input:
"{query}"
### Output:
"""

OPERATION_PROMPT_TEMPLATE = (
    _HEADER
    + _SCHEMA_FIELDS.replace(
        "{operation_line}",
        '  - operation: string (exact operation name, e.g., "createUser", "/v1/login")\n',
    )
    + "\n### Available Services:\n{services}\n"
    + _RULES.replace("{route_rule}", "")
    + "\n### Examples:\n\n"
    + _COMMON_EXAMPLES
    + """
#### Input: "Show me traces for the auth-service with operation /v1/login over the past 24 hours."
#### Output:
{
  "service": "auth-service",
  "operation": "/v1/login",
  "lookback": "24h",
  "limit": 100
}
"""
    + _FOOTER
)

ROUTE_PROMPT_TEMPLATE = (
    _HEADER
    + _SCHEMA_FIELDS.replace("{operation_line}", "")
    + "\n### Available Services and Routes:\n{services}\n"
    + _RULES.replace(
        "{route_rule}",
        '- To filter by endpoint, add "http.route=<route>" to tags, using only a route '
        "listed for the chosen service.\n",
    )
    + "\n### Examples:\n\n"
    + _COMMON_EXAMPLES
    + """
#### Input: "Show me traces for the auth-service hitting /v1/login over the past 24 hours."
#### Output:
{
  "service": "auth-service",
  "tags": "http.route=/v1/login",
  "lookback": "24h",
  "limit": 100
}
"""
    + _FOOTER
)


class CatalogView(Protocol):
    def services(self) -> set[str]: ...

    def routes_of(self, service: str | None) -> set[str]: ...


def template_for(route_validation: bool) -> str:
    return ROUTE_PROMPT_TEMPLATE if route_validation else OPERATION_PROMPT_TEMPLATE


def metadata_view(catalog: CatalogView, selected_service: str | None = None) -> str:
    """Describe the catalog for the prompt.

    With a selected service only that service and its routes are listed;
    otherwise every service gets one line with its routes.
    """
    if selected_service:
        routes = ", ".join(sorted(catalog.routes_of(selected_service)))
        return f"Selected service: {selected_service}\nAvailable routes: {routes}"

    return "\n".join(
        f"{name} (routes: {', '.join(sorted(catalog.routes_of(name)))})"
        for name in sorted(catalog.services())
    )


def render(template: str, services_view: str, user_query: str) -> str:
    """Substitute ``{services}`` and ``{query}`` once each.

    Substituted text is never scanned again, so a query that itself contains
    ``{services}`` is inserted verbatim.
    """
    values = {SERVICES_PLACEHOLDER: services_view, QUERY_PLACEHOLDER: user_query}
    used: set[str] = set()

    def _substitute(match: re.Match[str]) -> str:
        placeholder = match.group(0)
        if placeholder in used:
            return placeholder
        used.add(placeholder)
        return values[placeholder]

    return _PLACEHOLDER_RE.sub(_substitute, template)
