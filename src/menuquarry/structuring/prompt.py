"""Prompt construction for the structuring service."""

from __future__ import annotations

from typing import Dict, List

from menuquarry.protocols import KNOWN_CATEGORIES, PRICE_UNKNOWN

SYSTEM_PROMPT = (
    "You convert raw restaurant menu text into structured data. "
    "Respond ONLY with a single raw JSON object and nothing else."
)

USER_PROMPT_TEMPLATE = """Analyze the following restaurant menu text and extract all items.
Structure the output as a valid JSON object with exactly these keys: {keys}.
If a category is empty, provide an empty array [].
Each item must be an object with "name" (string), "price" (string) and an optional "description" (string).
Copy prices verbatim, including the currency symbol. If an item has no price, use "{sentinel}".
Be extremely precise. Do not invent items. Do not translate names.
TEXT:
---
{text}
---"""


def build_messages(text: str, sentinel: str = PRICE_UNKNOWN) -> List[Dict[str, str]]:
    keys = ", ".join(f'"{key}"' for key in KNOWN_CATEGORIES)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_PROMPT_TEMPLATE.format(keys=keys, sentinel=sentinel, text=text)},
    ]
