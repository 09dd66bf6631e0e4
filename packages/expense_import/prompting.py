"""Prompt construction for the category-mapping oracle.

Builds:
- system instructions for mapping raw spreadsheet strings to categories;
- user content that lists existing categories and embeds the raw items as a
  JSON array between ``BEGIN_RAW_ITEMS_JSON`` / ``END_RAW_ITEMS_JSON``;
- the strict ``response_format`` JSON Schema for the OpenAI Responses API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .models import NEW_SENTINEL, Category

BEGIN_MARKER = "BEGIN_RAW_ITEMS_JSON"
END_MARKER = "END_RAW_ITEMS_JSON"


def _category_lines(categories: Sequence[Category]) -> str:
    if not categories:
        return "  (none)"
    return "\n".join(f"  - {c.name} (ID: {c.id})" for c in categories)


def _category_ids(categories: Sequence[Category]) -> list[str]:
    return [i for i in dict.fromkeys(c.id for c in categories) if i]


def build_system_instructions() -> str:
    return (
        "You map raw strings taken from a personal expense spreadsheet (category cells, "
        "column headers, or bank transaction narrations) onto a user's existing spending "
        "categories. For every raw item return exactly one mapping. Use the ID of the "
        "existing category that best describes the spend; use NEW when none fits. "
        "Never invent IDs. Output JSON only that conforms to the specified schema."
    )


def build_user_content(tokens: Sequence[str], categories: Sequence[Category]) -> str:
    items_json = json.dumps(list(tokens), ensure_ascii=False)
    return (
        "Existing categories:\n"
        f"{_category_lines(categories)}\n\n"
        "Rules:\n"
        "- Copy each raw item verbatim into `raw`.\n"
        f"- `category_id` is one of the IDs above, or {NEW_SENTINEL}.\n"
        "- Payment channel words alone (UPI, NEFT, POS, Debit) carry no category; "
        "look at the rest of the text.\n\n"
        f"{BEGIN_MARKER}\n{items_json}\n{END_MARKER}"
    )


def build_response_format(
    categories: Sequence[Category],
) -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema for ``{"mappings": [{raw, category_id}]}``.

    ``category_id`` is enumerated as the existing ids plus ``"NEW"``.
    """

    allowed = _category_ids(categories) + [NEW_SENTINEL]
    return {
        "type": "json_schema",
        "name": "import_category_mappings",
        "schema": {
            "type": "object",
            "properties": {
                "mappings": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "raw": {"type": "string"},
                            "category_id": {"type": "string", "enum": allowed},
                        },
                        "required": ["raw", "category_id"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["mappings"],
            "additionalProperties": False,
        },
        "strict": True,
    }


# ---- single-description suggestion ----------------------------------------


def build_suggestion_content(description: str, categories: Sequence[Category]) -> str:
    return (
        f"Categorize this expense: {json.dumps(description, ensure_ascii=False)}\n"
        f"Categories:\n{_category_lines(categories)}\n"
        "Return the ID of the best matching category, or null when none fits."
    )


def build_suggestion_format(
    categories: Sequence[Category],
) -> ResponseFormatTextJSONSchemaConfigParam:
    return {
        "type": "json_schema",
        "name": "expense_category_suggestion",
        "schema": {
            "type": "object",
            "properties": {
                "category_id": {
                    "type": ["string", "null"],
                    "enum": _category_ids(categories) + [None],
                }
            },
            "required": ["category_id"],
            "additionalProperties": False,
        },
        "strict": True,
    }
