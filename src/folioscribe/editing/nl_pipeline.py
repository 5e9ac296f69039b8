"""Natural-language edit pipeline.

One call = one collaborator round trip, no retries:

1. Serialize the current projection (entry ids included)
2. Send {current_data, instruction} to the collaborator
3. Parse the response as a single JSON object (code fences tolerated)
4. Validate it (strict or lenient) and build the replacement projection

The replacement swaps the old projection wholesale. Nothing is applied when
any step fails, so the caller's data stays exactly as it was.

Calls are never cancelled. Each gets a monotonically increasing request id,
and a result whose request was overtaken by a newer one is flagged stale so
the caller can drop it instead of regressing to older data.
"""

import json
import re
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from folioscribe.document.model import DocumentModel, ReconcileReport
from folioscribe.editing.collaborator import GenerationCollaborator
from folioscribe.models.portfolio import REQUIRED_SCALARS, PortfolioData, is_blank
from folioscribe.services.exceptions import MalformedCollaboratorResponse
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

ValidationMode = Literal["strict", "lenient"]

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class EditResult(BaseModel):
    """Outcome of one natural-language edit."""

    request_id: int
    instruction: str
    data: PortfolioData
    stale: bool = False
    report: Optional[ReconcileReport] = None


def parse_collaborator_response(raw: str) -> Any:
    """Parse the collaborator's text as JSON.

    Raises:
        MalformedCollaboratorResponse: If the text is not valid JSON
    """
    text = (raw or "").strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedCollaboratorResponse(raw, f"invalid JSON: {e.msg} at position {e.pos}") from e


class NaturalLanguageEditPipeline:
    """Applies natural-language edits to a projection via a collaborator."""

    def __init__(
        self,
        collaborator: GenerationCollaborator,
        validation: ValidationMode = "strict",
    ):
        self.collaborator = collaborator
        self.validation = validation
        self._latest_request_id = 0

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    async def apply(
        self,
        instruction: str,
        current_data: Union[PortfolioData, Mapping[str, Any]],
    ) -> EditResult:
        """Round-trip ``current_data`` and ``instruction`` through the collaborator.

        ``current_data`` is never mutated.

        Returns:
            EditResult with the replacement projection

        Raises:
            ValueError: If the instruction is blank
            MalformedCollaboratorResponse: If the response is not valid JSON or
                fails validation
            httpx.HTTPError: Network errors from an HTTP-backed collaborator
        """
        if not instruction or not instruction.strip():
            raise ValueError("Instruction must not be empty")

        if isinstance(current_data, PortfolioData):
            current = current_data.model_copy(deep=True)
        else:
            current = PortfolioData.model_validate(dict(current_data))

        self._latest_request_id += 1
        request_id = self._latest_request_id

        logger.info(
            "nl_edit_started",
            request_id=request_id,
            instruction_length=len(instruction),
            validation=self.validation,
        )

        raw = await self.collaborator.generate(current.to_transport(), instruction)

        try:
            parsed = parse_collaborator_response(raw)
            data = self._validate(parsed, current, raw)
        except MalformedCollaboratorResponse as e:
            logger.error(
                "nl_edit_malformed_response",
                request_id=request_id,
                reason=e.reason,
                raw_length=len(raw or ""),
            )
            raise

        stale = request_id != self._latest_request_id
        if stale:
            logger.warning(
                "nl_edit_stale_response",
                request_id=request_id,
                latest_request_id=self._latest_request_id,
            )
        else:
            logger.info("nl_edit_completed", request_id=request_id)

        return EditResult(request_id=request_id, instruction=instruction, data=data, stale=stale)

    async def apply_to(self, model: DocumentModel, instruction: str) -> EditResult:
        """Apply an edit to a DocumentModel, dropping stale results.

        Accepted results are merged through ``replace_projection`` so every
        changed field is marked ai_generated individually.
        """
        result = await self.apply(instruction, model.data)
        if result.stale:
            return result

        result.report = model.replace_projection(
            result.data,
            origin="ai_generated",
            reason=f"Natural-language edit: {instruction}",
        )
        return result

    def _validate(self, parsed: Any, current: PortfolioData, raw: str) -> PortfolioData:
        if not isinstance(parsed, dict):
            raise MalformedCollaboratorResponse(raw, f"expected a JSON object, got {type(parsed).__name__}")

        try:
            data = PortfolioData.model_validate(parsed)
        except ValidationError as e:
            raise MalformedCollaboratorResponse(raw, f"schema validation failed: {e.error_count()} errors") from e

        if self.validation == "strict":
            dropped = [
                field for field in REQUIRED_SCALARS
                if not is_blank(getattr(current, field)) and is_blank(getattr(data, field))
            ]
            if dropped:
                raise MalformedCollaboratorResponse(raw, f"required fields dropped: {', '.join(dropped)}")

        return data
