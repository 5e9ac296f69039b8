"""Gap filling for partially completed portfolios.

AutoFiller fills empty fields with fixed default text and, when given an
expander, expands the user's own short free text into fuller prose. Every
value it writes is marked ai_generated so the editing surface can flag it
for review.
"""

import asyncio
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from folioscribe.document.model import DocumentModel
from folioscribe.editing.collaborator import TextExpander
from folioscribe.models.portfolio import PROFILE_ENTRY_ID, is_blank
from folioscribe.models.provenance import FieldRef
from folioscribe.render.registry import TemplateRegistry, default_registry
from folioscribe.services.exceptions import FolioscribeError
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.6
EXPANSION_CONFIDENCE = 0.8

DEFAULT_PROFILE = {
    "name": "Portfolio Owner",
    "title": "Software Developer",
    "about": (
        "A developer who enjoys turning ideas into working software.\n\n"
        "I care about readable code, steady collaboration and learning from every project."
    ),
    "location": "Seoul, South Korea",
}

DEFAULT_PROJECT = {
    "description": "Planned and built this project end to end, from requirements to release.",
    "period": "2024",
    "tech": ["Python", "Git"],
}

DEFAULT_ACHIEVEMENTS = [
    "Delivered assigned features on schedule",
    "Improved team workflow through code review",
]

# Free-text field -> section label used in expansion prompts
EXPANSION_SECTIONS = {
    "about": "about",
    "project": "project",
    "experience": "experience",
    "education": "education",
    "award": "award",
}


class FillReport(BaseModel):
    """Fields written by one auto-fill run."""

    filled: list[FieldRef] = Field(default_factory=list)
    expanded: list[FieldRef] = Field(default_factory=list)
    failed: list[FieldRef] = Field(default_factory=list)


class AutoFiller:
    """Fills gaps in a DocumentModel's projection."""

    def __init__(
        self,
        expander: Optional[TextExpander] = None,
        registry: TemplateRegistry = default_registry,
    ):
        self.expander = expander
        self.registry = registry

    async def fill(self, model: DocumentModel, template_id: str) -> FillReport:
        """Fill empty fields that ``template_id`` renders, then expand user text.

        Raises:
            UnknownTemplate: If the template id is not registered
        """
        support = self.registry.supported_fields(template_id)
        report = FillReport()

        # Only text the user actually wrote is expanded, never the defaults
        to_expand = self._expansion_targets(model) if self.expander else []

        self._fill_defaults(model, support, report)

        if to_expand:
            await self._expand(model, to_expand, report)

        logger.info(
            "autofill_completed",
            template_id=template_id,
            filled=len(report.filled),
            expanded=len(report.expanded),
            failed=len(report.failed),
        )
        return report

    def _fill_defaults(self, model: DocumentModel, support: dict, report: FillReport) -> None:
        data = model.data

        for field, value in DEFAULT_PROFILE.items():
            if field == "location" and not support.get("location"):
                continue
            if is_blank(getattr(data, field)):
                self._write(model, FieldRef.profile(field), value, f"Default {field} for an empty field", report)

        for project in data.projects:
            for field, value in DEFAULT_PROJECT.items():
                if is_blank(getattr(project, field)):
                    ref = FieldRef(entry_id=project.entry_id, field=field)
                    self._write(model, ref, value, f"Default project {field}", report)

        if support.get("achievements"):
            for exp in data.experience:
                if not exp.achievements:
                    ref = FieldRef(entry_id=exp.entry_id, field="achievements")
                    self._write(model, ref, DEFAULT_ACHIEVEMENTS, "Default achievements", report)

    @staticmethod
    def _write(model: DocumentModel, ref: FieldRef, value, reason: str, report: FillReport) -> None:
        if model.apply_generated(ref, value, confidence=DEFAULT_CONFIDENCE, reason=reason):
            report.filled.append(ref)

    @staticmethod
    def _expansion_targets(model: DocumentModel) -> list[tuple[FieldRef, str, str]]:
        targets = []
        if not is_blank(model.data.about):
            targets.append((FieldRef.profile("about"), model.data.about, EXPANSION_SECTIONS["about"]))
        for kind, entry in model.data.iter_entries():
            for field in type(entry).TEXT_FIELDS:
                text = getattr(entry, field)
                if not is_blank(text):
                    ref = FieldRef(entry_id=entry.entry_id, field=field)
                    targets.append((ref, text, EXPANSION_SECTIONS.get(kind, kind)))
        return targets

    async def _expand(
        self,
        model: DocumentModel,
        targets: list[tuple[FieldRef, str, str]],
        report: FillReport,
    ) -> None:
        async def expand_one(ref: FieldRef, text: str, section: str) -> Optional[str]:
            try:
                return await self.expander.expand(text, section)
            except (httpx.HTTPError, FolioscribeError) as e:
                logger.warning("autofill_expansion_failed", ref=ref.key, error=str(e))
                return None

        logger.info("autofill_expansion_started", fields=len(targets))
        results = await asyncio.gather(*(expand_one(*target) for target in targets))

        for (ref, original, _), expanded in zip(targets, results):
            if expanded is None or is_blank(expanded):
                report.failed.append(ref)
                continue
            if expanded == original:
                continue
            reason = "Expanded from the user's text" if ref.entry_id != PROFILE_ENTRY_ID else "Expanded introduction"
            if model.apply_generated(ref, expanded, confidence=EXPANSION_CONFIDENCE, reason=reason):
                report.expanded.append(ref)
