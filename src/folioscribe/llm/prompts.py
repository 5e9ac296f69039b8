"""LLM prompt templates and builders.

All collaborator prompts are built here so the edit pipeline and the
auto-filler phrase their requests the same way.
"""

import json
from textwrap import dedent
from typing import Any, Dict, Tuple


NL_EDIT_SYSTEM_PROMPT = dedent("""
    You are a portfolio editing assistant.

    You receive the current portfolio as a JSON object (in <current_data> tags)
    and an editing instruction written in natural language (in <instruction> tags).

    Apply the instruction and return the COMPLETE updated portfolio as a single
    JSON object with exactly the same structure as the input.

    Rules:
    - Change only what the instruction asks for; copy every other field unchanged
    - Keep every "entry_id" value exactly as given; new entries get no entry_id
    - Never remove name, title or email
    - Free-text fields may use **bold**, *italic*, [label](url) and `code`
    - Do not add HTML tags
    - Output the JSON object only: no explanation, no markdown code fences
""").strip()


EXPAND_SYSTEM_PROMPT = dedent("""
    You are a portfolio writing assistant.

    Expand the user's short input into polished portfolio prose for the
    "{section}" section.

    Rules:
    - Keep the user's original wording and weave it in naturally
    - Fill in plausible missing detail (duration, role, tools, measurable results)
    - Wrap every phrase you ADD in <span style="color:orange">...</span>;
      leave the user's own words unwrapped
    - Separate paragraphs with a blank line
    - Prefer concrete, quantified statements over vague praise
    - Output the finished text only, without quotes or commentary
""").strip()


def build_nl_edit_prompt(current_data: Dict[str, Any], instruction: str) -> Tuple[str, str]:
    """Build (system_prompt, user_prompt) for a natural-language edit.

    Args:
        current_data: Transport form of the projection (entry ids included)
        instruction: The user's editing instruction

    Returns:
        Tuple of (system prompt, user prompt)
    """
    payload = json.dumps(current_data, ensure_ascii=False, indent=2)
    user_prompt = (
        f"<current_data>\n{payload}\n</current_data>\n\n"
        f"<instruction>\n{instruction.strip()}\n</instruction>"
    )
    return NL_EDIT_SYSTEM_PROMPT, user_prompt


def build_expand_prompt(text: str, section: str) -> Tuple[str, str]:
    """Build (system_prompt, user_prompt) to expand one free-text field."""
    system_prompt = EXPAND_SYSTEM_PROMPT.format(section=section)
    user_prompt = f'Input: "{text.strip()}"\nOutput:'
    return system_prompt, user_prompt


def strip_wrapping_quotes(text: str) -> str:
    """Remove one pair of quotes wrapping the whole response, if present."""
    text = text.strip()
    for quote in ('"', "'"):
        if len(text) >= 2 and text.startswith(quote) and text.endswith(quote):
            return text[1:-1].strip()
    return text
