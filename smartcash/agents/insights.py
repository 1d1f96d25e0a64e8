"""
AI Insight Agent for SmartCash

DESIGN DECISION: We use Gemini with a strict JSON response schema so the
answer can be parsed into AIInsight models without any free-text scraping.

CRITICAL BOUNDARIES:

- CAN: Read a bounded slice of the user's transactions
- CAN: Return a short list of observations and recommendations
- CANNOT: Change, store or delete anything
- CANNOT: Break the dashboard. Every failure (network, quota, blocked
  response, invalid JSON, schema mismatch) ends in the configured fallback
  result instead of an exception.

There is no retry and no caching: each call re-summarizes the list and makes
one fresh request.
"""

import json
from typing import Iterable, Optional

import google.generativeai as genai
import structlog
from pydantic import TypeAdapter, ValidationError

from smartcash.activity import ActivityLogger
from smartcash.config import GeminiSettings, get_settings
from smartcash.models.transaction import AIInsight, InsightSeverity, Transaction


logger = structlog.get_logger(__name__)

GUEST_LABEL = "guest"

PERSONAL_INSTRUCTION = (
    "You are a personal financial advisor. Analyze the user's transactions "
    "and give practical tips to save money. Write in Brazilian Portuguese "
    "and express amounts in Brazilian Real (R$)."
)

ADMIN_INSTRUCTION = (
    "You are a master financial auditor. Analyze the spending of multiple "
    "users of the platform and identify global trends, the categories where "
    "spending is growing fastest and possible anomalies. Write in Brazilian "
    "Portuguese and express amounts in Brazilian Real (R$)."
)

# Gemini response schema: a JSON array of insight objects
INSIGHT_RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
            "recommendation": {"type": "STRING"},
            "severity": {"type": "STRING", "enum": ["low", "medium", "high"]},
        },
        "required": ["title", "description", "recommendation", "severity"],
    },
}

PLACEHOLDER_INSIGHT = AIInsight(
    title="Could not generate insights",
    description="The AI service did not return a usable analysis this time.",
    recommendation="Try again in a few moments.",
    severity=InsightSeverity.LOW,
)

_insights_adapter = TypeAdapter(list[AIInsight])


def format_transaction_line(transaction: Transaction) -> str:
    """One prompt line: '<email-or-guest> on <date>: <description> - <amount> (<category>)'."""
    who = transaction.user_email or GUEST_LABEL
    return (
        f"{who} on {transaction.date.isoformat()}: "
        f"{transaction.description} - {transaction.amount} "
        f"({transaction.category.value})"
    )


def build_transactions_context(
    transactions: Iterable[Transaction],
    limit: int,
) -> str:
    """Summarize at most `limit` transactions, one per line."""
    lines = []
    for transaction in transactions:
        if len(lines) >= limit:
            break
        lines.append(format_transaction_line(transaction))
    return "\n".join(lines)


def parse_insights(text: Optional[str]) -> list[AIInsight]:
    """
    Parse the model's raw text into insights.

    Empty or blank text parses as an empty list.

    Raises:
        ValueError: If the text is not a JSON array of valid insights
    """
    text = (text or "").strip()
    if not text:
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Find the JSON array in the response
        start = text.find("[")
        end = text.rfind("]") + 1
        if start < 0 or end <= start:
            raise ValueError("Response is not JSON")
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError as e:
            raise ValueError(f"Response is not JSON: {e}")

    if not isinstance(data, list):
        raise ValueError("Response is not a JSON array")

    try:
        return _insights_adapter.validate_python(data)
    except ValidationError as e:
        raise ValueError(f"Response does not match the insight schema: {e}")


class InsightAgent:
    """
    AI agent producing spending insights.

    RESPONSIBILITIES:
    - Turn a transaction list into a compact prompt
    - Ask Gemini for a schema-constrained list of insights
    - Convert any failure into the fallback result

    BOUNDARIES:
    - NEVER raises to its caller
    - NEVER persists anything
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._activity_logger = activity_logger
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._models = {}

    def _get_model(self, admin_mode: bool):
        """One model per system instruction, created on first use."""
        if admin_mode not in self._models:
            self._models[admin_mode] = genai.GenerativeModel(
                model_name=self._settings.model_name,
                system_instruction=ADMIN_INSTRUCTION if admin_mode else PERSONAL_INSTRUCTION,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                    "response_schema": INSIGHT_RESPONSE_SCHEMA,
                },
            )
        return self._models[admin_mode]

    def fallback(self) -> list[AIInsight]:
        """What callers get when insights cannot be generated."""
        if self._settings.insight_fallback == "placeholder":
            return [PLACEHOLDER_INSIGHT.model_copy()]
        return []

    async def get_insights(
        self,
        transactions: list[Transaction],
        admin_mode: bool = False,
    ) -> list[AIInsight]:
        """
        Generate insights for a list of transactions.

        Returns an empty list for an empty input without calling the model,
        and the configured fallback on any failure.

        An empty response text is read as "no insights" and returns an empty
        list under both fallback settings; it is not treated as a failure.
        """
        if not transactions:
            return []

        context = build_transactions_context(
            transactions,
            self._settings.max_prompt_transactions,
        )
        prompt = f"Analyze this data:\n{context}"

        try:
            model = self._get_model(admin_mode)
            response = await model.generate_content_async(prompt)
            return parse_insights(response.text)
        except Exception as e:
            logger.warning("insight_generation_failed", error=str(e))
            if self._activity_logger:
                self._activity_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                )
            return self.fallback()
