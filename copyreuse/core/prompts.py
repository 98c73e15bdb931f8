"""
Prompt assembly for rewrite requests and parsing of the model's reply.
"""

import re
from typing import List, Optional

DEFAULT_SUGGESTION_COUNT = 10

_ENUMERATION = re.compile(r"^\d+[.)]\s*")


def build_system_prompt(style_guide_text: str) -> str:
    return (
        "You are a product copywriting assistant.\n\n"
        "Follow the complete style guide below. Every output MUST comply with all writing rules.\n\n"
        "=== STYLE GUIDE ===\n"
        f"{style_guide_text}\n"
        "====================="
    )


def build_user_prompt(node_text: str, extra_context: Optional[str] = None,
                      count: int = DEFAULT_SUGGESTION_COUNT) -> str:
    return (
        "Rewrite this UI copy:\n\n"
        f'- Text: "{node_text}"\n'
        f'- Spec: "{extra_context or "none"}"\n\n'
        f"Give {count} concise, well-formatted rewrite options."
    )


def parse_suggestions(raw: str, limit: int = DEFAULT_SUGGESTION_COUNT) -> List[str]:
    """
    Turn a model reply into a clean list of options.

    Blank lines and code fences are dropped, leading "1." / "1)" numbering is
    stripped, and at most limit options are kept.
    """
    suggestions = []
    for line in (raw or "").split("\n"):
        if not line.strip() or line.startswith("```"):
            continue
        suggestion = _ENUMERATION.sub("", line).strip()
        if not suggestion:
            continue
        suggestions.append(suggestion)
        if len(suggestions) >= limit:
            break
    return suggestions
