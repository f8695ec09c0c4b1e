"""Natural-language to trace query translation pipeline.

``Translator.translate_query`` is the single entry point for callers. One call
runs, in order: generation health check, catalog load, prompt rendering,
generation, JSON extraction and validation. Any failure aborts the call with
a typed ``TranslationError``; nothing is retried here.
"""

import logging

from . import parsing, prompt
from .clients.catalog import ServiceCatalog
from .clients.generation import GenerationClient
from .config import TranslatorConfig
from .exceptions import EmptyQueryError, TranslationError
from .schema import StructuredQuery, TranslationContext
from .telemetry import get_tracer
from .validation import QueryValidator

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class Translator:
    """Composes catalog, prompt, generation, parsing and validation.

    The translator owns its catalog; build one translator per process (or per
    test) and reuse it so the catalog is only fetched once.
    """

    def __init__(
        self,
        catalog: ServiceCatalog,
        generation: GenerationClient,
        validator: QueryValidator | None = None,
        template: str | None = None,
    ) -> None:
        self.catalog = catalog
        self.generation = generation
        self.validator = validator or QueryValidator()
        self.template = template or prompt.template_for(
            self.validator.route_validation
        )

    @classmethod
    def from_config(cls, config: TranslatorConfig | None = None) -> "Translator":
        config = config or TranslatorConfig.from_env()
        return cls(
            catalog=ServiceCatalog(
                config.metadata_url, timeout=config.metadata_timeout
            ),
            generation=GenerationClient(
                config.generation_url,
                model=config.generation_model,
                health_timeout=config.health_timeout,
                generation_timeout=config.generation_timeout,
            ),
            validator=QueryValidator(route_validation=config.route_validation),
        )

    async def translate_query(
        self, query: str, context: TranslationContext | None = None
    ) -> StructuredQuery:
        """Translate a natural-language trace search into a StructuredQuery.

        Args:
            query: The user's free-form description of the search.
            context: Optional hint; a selected service narrows the prompt to
                that service and fills in the service if the model omits it.

        Returns:
            A query that has passed every validation rule.

        Raises:
            TranslationError: Any typed pipeline failure.
        """
        if not query or not query.strip():
            raise EmptyQueryError()

        selected_service = context.selected_service if context else None

        with tracer.start_as_current_span("translate_query") as span:
            span.set_attribute(
                "translate.route_validation", self.validator.route_validation
            )
            if selected_service:
                span.set_attribute("translate.selected_service", selected_service)

            logger.info(f"Starting translation for query: {query!r}")
            try:
                await self.generation.check_health()
                await self.catalog.ensure_loaded()

                rendered = prompt.render(
                    self.template,
                    prompt.metadata_view(self.catalog, selected_service),
                    query,
                )
                logger.debug(f"Rendered prompt ({len(rendered)} chars)")

                raw_text = await self.generation.generate(rendered)
                candidate = parsing.extract(raw_text)
                logger.debug(f"Parsed candidate: {candidate}")

                result = self.validator.normalize(
                    candidate, self.catalog, selected_service
                )
            except TranslationError as e:
                span.set_attribute("translate.error", type(e).__name__)
                # The only log line for a typed failure; clients just raise.
                reason = getattr(e, "reason", "")
                logger.warning(
                    f"Translation failed ({type(e).__name__}): {e}"
                    + (f" [reason: {reason}]" if reason else "")
                )
                raise

            if result.service:
                span.set_attribute("translate.service", result.service)
            logger.info(f"Translated query: {result.to_wire()}")
            return result
