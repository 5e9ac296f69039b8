"""Generation collaborator interfaces.

The pipeline and the auto-filler depend only on these abstract seams; the
LLM-backed implementations are one way to satisfy them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from folioscribe.llm.prompts import (
    build_expand_prompt,
    build_nl_edit_prompt,
    strip_wrapping_quotes,
)
from folioscribe.services.llm_client import LLMClient


class GenerationCollaborator(ABC):
    """Turns (current data, instruction) into a response string.

    The response should hold one JSON object of the same shape as
    ``current_data``; validating that is the caller's job.
    """

    @abstractmethod
    async def generate(self, current_data: Dict[str, Any], instruction: str) -> str:
        ...


class TextExpander(ABC):
    """Expands a short free-text field into fuller prose."""

    @abstractmethod
    async def expand(self, text: str, section: str) -> str:
        ...


class LLMCollaborator(GenerationCollaborator):
    """GenerationCollaborator backed by a chat completion in JSON mode."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def generate(self, current_data: Dict[str, Any], instruction: str) -> str:
        system_prompt, prompt = build_nl_edit_prompt(current_data, instruction)
        return await self.client.complete_json(prompt, system_prompt)


class LLMExpander(TextExpander):
    """TextExpander backed by a free-text chat completion."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def expand(self, text: str, section: str) -> str:
        system_prompt, prompt = build_expand_prompt(text, section)
        expanded = await self.client.complete_text(prompt, system_prompt)
        return strip_wrapping_quotes(expanded)
