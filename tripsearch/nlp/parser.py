"""Natural-language query parsing.

``QueryParser`` tries the semantic parser first and falls back to the
rule-based parser on any failure. Both produce the same ``ParsedQuery``
shape; only confidence and explanation tell them apart.
"""
import logging
from typing import Optional, Protocol

from tripsearch.core.config import settings
from tripsearch.models import Filters, Intent, ParsedQuery
from tripsearch.nlp.analyzer import analyzer
from tripsearch.nlp.rules import RuleBasedParser, extract_keywords

logger = logging.getLogger(__name__)

EMPTY_QUERY_EXPLANATION = "Empty query provided"


class SemanticParser(Protocol):
    async def parse(self, query: str) -> ParsedQuery: ...


class QueryParser:
    def __init__(
        self,
        semantic: Optional[SemanticParser] = None,
        fallback: Optional[RuleBasedParser] = None,
    ):
        self.semantic = semantic
        self.fallback = fallback or RuleBasedParser()

    async def parse(self, text: str) -> ParsedQuery:
        # Longer input is cut, never rejected.
        stripped = text.strip()[: settings.MAX_QUERY_LENGTH].strip()
        query = stripped.lower()
        if not query:
            return ParsedQuery(
                intent=Intent.UNKNOWN,
                search_text=text,
                filters=Filters(),
                confidence=0.0,
                keywords=[],
                explanation=EMPTY_QUERY_EXPLANATION,
            )

        parsed = None
        if self.semantic is not None:
            try:
                parsed = await self.semantic.parse(query)
            except Exception as e:
                logger.debug(f"Semantic parser failed, using rules: {e}")

        if parsed is None:
            parsed = self.fallback.parse(stripped)

        return parsed.model_copy(update={"keywords": extract_keywords(query)})


query_parser = QueryParser(semantic=analyzer)
