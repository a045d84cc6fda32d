"""Buyer-assistant narration of report output.

Reports are serialized to JSON and handed to a text-generation model. An
empty report never reaches the model; the caller gets a "no data" message
instead. Narration is best-effort: model failures produce a fallback text
and never replace the report itself.
"""
from __future__ import annotations

import json
import logging
from typing import Protocol, Sequence

from google import genai
from google.genai import types
from pydantic import BaseModel

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "An error occurred while generating AI insights."
NOT_CONFIGURED_TEXT = (
    "AI narration is not configured. "
    "Set the GEMINI_API_KEY environment variable to enable buyer insights."
)

SALES_SNAPSHOT_PROMPT = """As an AI-powered fashion buying assistant, summarize this sales and profit \
data. Highlight top-performing categories by sales volume and gross profit margin. Point out any \
categories with unusually high return rates or low margins, suggesting immediate actionable steps \
for a fashion buyer. Focus on profitability and inventory health.

Data:
{data}

Provide insights in bullet points, followed by actionable recommendations."""

UNDERPERFORMER_PROMPT = """As an AI-powered fashion buying assistant, analyze these underperforming \
products (high stock, low recent sales). For each product, provide specific, actionable \
recommendations for a fashion buyer to mitigate losses or improve performance. Consider markdown \
strategies, promotional bundles, re-evaluation of future orders, or reallocation to different \
sales channels.

Data:
{data}

Provide detailed recommendations for each product listed."""

SUPPLIER_PROMPT = """As an AI-powered fashion buying assistant, analyze this supplier performance \
data, focusing on sales contribution, gross profit margins, and return rates per supplier. \
Identify the top 3 most valuable suppliers and the top 3 most problematic suppliers. For \
problematic suppliers, suggest specific discussion points or strategies to address quality, \
lead times, or profitability issues.

Data:
{data}

Provide insights and recommendations in a structured format."""

TREND_PROMPT = """A fashion buyer is exploring the trend "{keyword}". Based on the following \
product data, identify key characteristics of this trend (e.g., common materials, styles, \
aesthetics, color palettes). Suggest what types of new products or features a buyer should \
consider sourcing to capitalize on this trend, and highlight any current inventory that strongly \
aligns with this emerging trend.

Relevant Products:
{data}

Provide insights in a concise, actionable format."""
TREND_FIELDS = {"name", "description", "category", "material"}


class Narrator(Protocol):
    def generate(self, prompt: str) -> str: ...


class GeminiNarrator:
    """Calls Gemini through the google-genai client."""

    def __init__(self, api_key: str = "", model: str = "gemini-1.5-flash", timeout: float = 30.0):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def generate(self, prompt: str) -> str:
        if not self._api_key:
            return NOT_CONFIGURED_TEXT

        try:
            client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
            response = client.models.generate_content(model=self._model, contents=prompt)
        except Exception as e:
            # exception text can carry request details; keep it out of the logs
            logger.error("Gemini request failed: %s (code=%s)", type(e).__name__, getattr(e, "code", None))
            return FALLBACK_TEXT

        if not response.text:
            logger.error("Gemini returned no text for model %s", self._model)
            return FALLBACK_TEXT
        return response.text


def _dump(records: Sequence[BaseModel]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in records], indent=2)


def summarize_sales_snapshot(narrator: Narrator, records: Sequence[BaseModel]) -> str:
    if not records:
        return "No sales data available for summarization."
    return narrator.generate(SALES_SNAPSHOT_PROMPT.format(data=_dump(records)))


def suggest_underperformer_actions(narrator: Narrator, records: Sequence[BaseModel]) -> str:
    if not records:
        return "No underperforming products found to suggest actions for."
    return narrator.generate(UNDERPERFORMER_PROMPT.format(data=_dump(records)))


def analyze_supplier_performance(narrator: Narrator, records: Sequence[BaseModel]) -> str:
    if not records:
        return "No supplier performance data available for analysis."
    return narrator.generate(SUPPLIER_PROMPT.format(data=_dump(records)))


def analyze_trend(narrator: Narrator, keyword: str, products: Sequence[BaseModel]) -> str:
    if not products:
        return f'No relevant product data found for the "{keyword}" trend to analyze.'
    data = json.dumps([p.model_dump(include=TREND_FIELDS) for p in products], indent=2)
    return narrator.generate(TREND_PROMPT.format(keyword=keyword, data=data))
