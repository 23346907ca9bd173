import json
import re

from pydantic import ValidationError

from tripsearch.core.errors import SemanticParseError
from tripsearch.models import Filters, ParsedQuery
from tripsearch.nlp.explanation import generate_explanation
from tripsearch.nlp.remote_llm import RemoteLLMClient, remote_llm

THINK_END = "</think>"
CODE_FENCE = re.compile(r"```(?:json)?")


class LLMQueryParser:
    SYSTEM_PROMPT = """
    You are a trip search query interpreter. Analyze the user's search query and extract structured data.
    Return ONLY a JSON object with these keys:
    - intent (str): "activity", "place", "mixed" or "unknown".
    - filters (object): any of
        activity_types (list[str]): hiking, walking, biking, climbing, skiing, snowboarding, kayaking, swimming, running, backpacking, camping, fishing
        difficulty_levels (list[str]): easy, moderate, hard, expert
        water_features (list[str]): ["water"] when water is wanted
        max_duration (float): hours
        max_distance (float): kilometers
    - location (object or null): {"name": str, "radius_km": float}
    - spatial (object or null): {"within": {"type": "region", "name": str}, "near": {"type": "circle", "name": str, "radius_km": float}, "areas": []}
    - confidence (float): between 0 and 1.
    - explanation (str): one short sentence.

    Example:
    Query: "easy hiking near portland within 10 miles"
    Output: {
        "intent": "activity",
        "filters": {"activity_types": ["hiking"], "difficulty_levels": ["easy"], "max_distance": 16.09},
        "location": {"name": "Portland", "radius_km": 50},
        "spatial": {"near": {"type": "circle", "name": "Portland", "radius_km": 16.09}},
        "confidence": 0.9,
        "explanation": "Easy hikes within 16 km of Portland."
    }
    """

    def __init__(self, llm: RemoteLLMClient = remote_llm):
        self.llm = llm

    def _extract_json(self, response: str):
        """First decodable JSON value in a completion, or None.

        Reasoning models prefix their answer with a <think> block, and most
        models wrap it in a fenced code block or a sentence of prose.
        """
        if THINK_END in response:
            response = response.rsplit(THINK_END, 1)[-1]

        candidates = []
        start = response.find("{")
        end = response.rfind("}")
        if start != -1 and end > start:
            candidates.append(response[start : end + 1])
        candidates.append(CODE_FENCE.sub("", response).strip())

        for candidate in candidates:
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                continue
        return None

    async def parse(self, query: str) -> ParsedQuery:
        response = await self.llm.generate(query, self.SYSTEM_PROMPT)
        data = self._extract_json(response)
        if not isinstance(data, dict):
            raise SemanticParseError("Failed to parse JSON")

        filters = data.get("filters")
        data["filters"] = Filters.coerce(filters if isinstance(filters, dict) else {})
        data["search_text"] = query
        data.pop("keywords", None)

        try:
            data["confidence"] = min(max(float(data.get("confidence", 0.0)), 0.0), 1.0)
            parsed = ParsedQuery.model_validate(data)
        except (TypeError, ValueError, ValidationError) as e:
            raise SemanticParseError(f"Invalid LLM output: {e}") from e

        if not parsed.explanation:
            parsed = parsed.model_copy(
                update={"explanation": generate_explanation(parsed)}
            )
        return parsed


analyzer = LLMQueryParser()
