"""Provenance-tracked document model.

DocumentModel owns one Document and is its only mutator. Two views are kept
in step:

- Blocks: the editing surface's units of text, each carrying origin,
  confidence and an append-only edit history.
- The PortfolioData projection: the compiler's input, with a provenance
  side map keyed on (entry_id, field).

A block with a ``binding`` mirrors one free-text projection field. User
commits flow block -> projection; wholesale projection swaps flow
projection -> block, except into blocks the user is currently editing.
"""

from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, Field

from folioscribe.models.block import (
    Block,
    Document,
    EditHistoryEntry,
    Section,
    ValidationSummary,
)
from folioscribe.models.portfolio import (
    ENTRY_KINDS,
    PLACEHOLDER_FIELDS,
    PROFILE_ENTRY_ID,
    PROFILE_FIELDS,
    PROFILE_TEXT_FIELDS,
    PortfolioData,
    PortfolioEntry,
    clean_string_list,
    is_blank,
)
from folioscribe.models.provenance import FieldProvenance, FieldRef, Origin
from folioscribe.services.exceptions import DocumentInconsistent, StaleBlockReference
from folioscribe.utils.ids import generate_block_id, generate_doc_id, generate_entry_id, utc_now
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

# Entry kind -> section holding its bound blocks
KIND_SECTIONS = {
    "project": "projects",
    "experience": "experience",
    "education": "education",
    "award": "awards",
}

SECTION_TITLES = {
    "about": "About",
    "projects": "Projects",
    "experience": "Experience",
    "education": "Education",
    "awards": "Awards",
}

DEFAULT_AI_CONFIDENCE = 0.8

SaveCallback = Callable[[Document], None]
ProjectionInput = Union[PortfolioData, Mapping[str, Any]]


class ReconcileReport(BaseModel):
    """What a wholesale projection swap changed."""

    changed_fields: list[FieldRef] = Field(default_factory=list)
    added_entries: list[str] = Field(default_factory=list)
    removed_entries: list[str] = Field(default_factory=list)
    updated_blocks: list[str] = Field(default_factory=list)
    created_blocks: list[str] = Field(default_factory=list)
    removed_blocks: list[str] = Field(default_factory=list)
    skipped_dirty: list[str] = Field(
        default_factory=list,
        description="Bound blocks left untouched because the user is editing them"
    )


def _owner(data: PortfolioData, entry_id: str) -> Optional[BaseModel]:
    if entry_id == PROFILE_ENTRY_ID:
        return data
    located = data.find_entry(entry_id)
    return located[1] if located else None


def _has_field(owner: BaseModel, field: str) -> bool:
    if isinstance(owner, PortfolioData):
        return field in PROFILE_FIELDS
    return field in type(owner).model_fields and field != "entry_id"


def _coerce_value(owner: BaseModel, field: str, value: Any) -> Any:
    if field in getattr(type(owner), "STRING_LIST_FIELDS", frozenset()):
        return clean_string_list(value)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value if not is_blank(item))
    return str(value)


def _content_fields(owner: BaseModel) -> list[str]:
    if isinstance(owner, PortfolioData):
        return list(PROFILE_FIELDS)
    return owner.field_names()


def _text_fields(owner: BaseModel) -> tuple[str, ...]:
    if isinstance(owner, PortfolioData):
        return PROFILE_TEXT_FIELDS
    return type(owner).TEXT_FIELDS


def _coerce_projection(new_data: ProjectionInput) -> PortfolioData:
    if isinstance(new_data, PortfolioData):
        return new_data.model_copy(deep=True)
    return PortfolioData.model_validate(dict(new_data))


class DocumentModel:
    """Sole mutator of a Document and its canonical projection."""

    def __init__(self, document: Document, on_save: Optional[SaveCallback] = None):
        self.document = document
        self.on_save = on_save
        self._dirty: set[str] = set()

    @classmethod
    def from_portfolio(
        cls,
        data: ProjectionInput,
        user_id: str,
        origin: Origin = "user_provided",
        confidence: float = 1.0,
        reason: Optional[str] = None,
        on_save: Optional[SaveCallback] = None,
    ) -> "DocumentModel":
        """Build a document from a projection.

        Every non-blank field is recorded with ``origin``; every free-text
        field (about, entry descriptions) gets one bound block.
        """
        projection = _coerce_projection(data)
        document = Document(doc_id=generate_doc_id(), user_id=user_id, data=projection)
        model = cls(document, on_save=on_save)

        for entry_id, owner in model._owners():
            for field in _content_fields(owner):
                if not is_blank(getattr(owner, field)):
                    model._mark(FieldRef(entry_id=entry_id, field=field), origin, confidence, reason)
            model._ensure_bound_blocks(entry_id, owner, origin, confidence, reason)

        logger.info(
            "document_created",
            doc_id=document.doc_id,
            user_id=user_id,
            blocks=sum(1 for _ in document.iter_blocks()),
        )
        return model

    # -- accessors ---------------------------------------------------------

    @property
    def data(self) -> PortfolioData:
        return self.document.data

    @property
    def provenance(self):
        return self.document.provenance

    def get_block(self, block_id: str) -> Optional[Block]:
        return self.document.find_block(block_id)

    def block_for(self, ref: FieldRef) -> Optional[Block]:
        """The block bound to ``ref``, if any."""
        for block in self.document.iter_blocks():
            if block.binding == ref:
                return block
        return None

    def get_value(self, ref: FieldRef) -> Any:
        owner = _owner(self.data, ref.entry_id)
        if owner is None or not _has_field(owner, ref.field):
            return None
        return getattr(owner, ref.field)

    # -- block operations --------------------------------------------------

    def create_block(
        self,
        section_id: str,
        text: str,
        origin: Origin = "user_provided",
        confidence: float = 1.0,
        auto_fill_reason: Optional[str] = None,
        binding: Optional[FieldRef] = None,
        created_by: str = "system",
    ) -> Block:
        """Append a new block to ``section_id`` (created if missing)."""
        section = self.document.find_section(section_id)
        if section is None:
            section = Section(section_id=section_id, title=SECTION_TITLES.get(section_id, section_id.title()))
            self.document.sections.append(section)

        block = Block(
            block_id=generate_block_id(),
            section_id=section_id,
            text=text,
            origin=origin,
            confidence=confidence if origin == "ai_generated" else 1.0,
            auto_fill_reason=auto_fill_reason if origin == "ai_generated" else None,
            binding=binding,
            created_by=created_by,
        )
        section.blocks.append(block)
        self._touch()

        logger.debug(
            "block_created",
            block_id=block.block_id,
            section_id=section_id,
            origin=origin,
            bound=binding.key if binding else None,
        )
        return block

    def commit_edit(self, block_id: str, new_text: str, editor_id: str) -> Optional[Block]:
        """Commit a user edit to a block.

        The block becomes ``user_edited`` with confidence 1.0 and gains exactly
        one history entry holding the accepted text. A bound block also
        writes through to its projection field.

        Returns:
            The edited block, or None if ``block_id`` no longer exists (the
            caller should refetch rather than retry)
        """
        block = self.document.find_block(block_id)
        if block is None:
            signal = StaleBlockReference(block_id)
            logger.warning("stale_block_reference", block_id=block_id, editor_id=editor_id, error=str(signal))
            return None

        previous_length = len(block.text)
        now = utc_now()
        block.text = new_text
        block.origin = "user_edited"
        block.confidence = 1.0
        block.auto_fill_reason = None
        block.edit_history.append(EditHistoryEntry(text=new_text, edited_at=now, edited_by=editor_id))
        block.updated_at = now
        self._dirty.discard(block_id)

        if block.binding is not None:
            self._write_field(block.binding, new_text, "user_edited")

        self._touch()
        logger.info(
            "block_committed",
            block_id=block_id,
            editor_id=editor_id,
            previous_length=previous_length,
            new_length=len(new_text),
            history=len(block.edit_history),
        )
        return block

    def remove_block(self, block_id: str) -> bool:
        """Remove a free-standing block.

        Bound blocks disappear only with their owning entry (remove_entry).
        """
        for section in self.document.sections:
            for block in section.blocks:
                if block.block_id != block_id:
                    continue
                if block.binding is not None:
                    logger.warning("remove_bound_block_refused", block_id=block_id, binding=block.binding.key)
                    return False
                section.blocks.remove(block)
                self._dirty.discard(block_id)
                self._touch()
                logger.info("block_removed", block_id=block_id, section_id=section.section_id)
                return True
        logger.warning("stale_block_reference", block_id=block_id, operation="remove_block")
        return False

    # -- dirty tracking ----------------------------------------------------

    def mark_dirty(self, block_id: str) -> bool:
        """Flag a block as being edited (focus)."""
        if self.document.find_block(block_id) is None:
            logger.warning("stale_block_reference", block_id=block_id, operation="mark_dirty")
            return False
        self._dirty.add(block_id)
        return True

    def clear_dirty(self, block_id: str) -> None:
        """Clear the editing flag (blur)."""
        self._dirty.discard(block_id)

    def is_dirty(self, block_id: str) -> bool:
        return block_id in self._dirty

    # -- projection operations ---------------------------------------------

    def set_field(self, ref: FieldRef, value: Any, editor_id: str) -> bool:
        """User edit of any projection field, list fields included.

        A bound block mirroring the field is committed too, so its history
        records the edit.

        Returns:
            False if the entry or field does not exist
        """
        owner = _owner(self.data, ref.entry_id)
        if owner is None or not _has_field(owner, ref.field):
            logger.warning("set_field_unknown", ref=ref.key, editor_id=editor_id)
            return False

        block = self.block_for(ref)
        if block is not None:
            self.commit_edit(block.block_id, _coerce_value(owner, ref.field, value), editor_id)
            return True

        self._write_field(ref, value, "user_edited")
        self._touch()
        logger.info("field_edited", ref=ref.key, editor_id=editor_id)
        return True

    def apply_generated(
        self,
        ref: FieldRef,
        value: Any,
        confidence: float = DEFAULT_AI_CONFIDENCE,
        reason: Optional[str] = None,
    ) -> bool:
        """Write a generated value into one projection field.

        The field is marked ai_generated. A bound block follows unless the
        user is editing it or has already edited it.

        Returns:
            False if the entry or field does not exist
        """
        owner = _owner(self.data, ref.entry_id)
        if owner is None or not _has_field(owner, ref.field):
            logger.warning("apply_generated_unknown", ref=ref.key)
            return False

        block = self.block_for(ref)
        if block is not None and (block.block_id in self._dirty or block.origin == "user_edited"):
            logger.info("apply_generated_skipped", ref=ref.key, block_id=block.block_id)
            return False

        setattr(owner, ref.field, _coerce_value(owner, ref.field, value))
        self._mark(ref, "ai_generated", confidence, reason)
        if block is not None:
            block.text = getattr(owner, ref.field)
            block.origin = "ai_generated"
            block.confidence = confidence
            block.auto_fill_reason = reason
            block.updated_at = utc_now()
        self._touch()

        logger.debug("field_generated", ref=ref.key, confidence=confidence)
        return True

    def add_entry(
        self,
        kind: str,
        entry: Union[PortfolioEntry, Mapping[str, Any], None] = None,
        origin: Origin = "user_provided",
        confidence: float = 1.0,
        reason: Optional[str] = None,
    ) -> PortfolioEntry:
        """Append a structured entry (project, experience, ...) to the projection.

        Raises:
            KeyError: If ``kind`` is not a known entry kind
        """
        _, entry_cls = ENTRY_KINDS[kind]
        if entry is None:
            entry = entry_cls()
        elif not isinstance(entry, entry_cls):
            entry = entry_cls.model_validate(dict(entry))
        if entry.entry_id in self.data.entry_ids():
            entry = entry.model_copy(update={"entry_id": generate_entry_id(kind)})

        self.data.entries(kind).append(entry)
        for field in entry.field_names():
            if not is_blank(getattr(entry, field)):
                self._mark(FieldRef(entry_id=entry.entry_id, field=field), origin, confidence, reason)
        self._ensure_bound_blocks(entry.entry_id, entry, origin, confidence, reason)
        self._touch()

        logger.info("entry_added", kind=kind, entry_id=entry.entry_id, origin=origin)
        return entry

    def remove_entry(self, entry_id: str) -> bool:
        """Delete an entry with its provenance and its bound blocks."""
        located = self.data.find_entry(entry_id)
        if located is None:
            logger.warning("remove_entry_unknown", entry_id=entry_id)
            return False
        kind, entry = located
        self.data.entries(kind).remove(entry)
        dropped = self.provenance.drop_entry(entry_id)
        removed_blocks = self._remove_bound_blocks(entry_id)
        self._touch()

        logger.info(
            "entry_removed",
            kind=kind,
            entry_id=entry_id,
            provenance_dropped=dropped,
            blocks_removed=len(removed_blocks),
        )
        return True

    def replace_projection(
        self,
        new_data: ProjectionInput,
        origin: Origin = "ai_generated",
        reason: Optional[str] = None,
        confidence: float = DEFAULT_AI_CONFIDENCE,
    ) -> ReconcileReport:
        """Swap the projection wholesale.

        ``doc_id`` and ``created_at`` are preserved and ``updated_at`` is
        re-stamped. Entry ids are carried forward, by id when the new data
        repeats them, else by position within a kind. Every field whose value
        differs is marked with ``origin``; entries that disappeared lose their
        provenance and bound blocks.

        Raises:
            pydantic.ValidationError: If ``new_data`` cannot be coerced
        """
        old = self.data
        new = _coerce_projection(new_data)
        self._carry_entry_ids(old, new)
        report = ReconcileReport()

        for field in PROFILE_FIELDS:
            if getattr(old, field) != getattr(new, field):
                report.changed_fields.append(FieldRef.profile(field))

        old_index = {entry.entry_id: (kind, entry) for kind, entry in old.iter_entries()}
        old_ids = set(old_index)
        new_ids = set()
        for kind, entry in new.iter_entries():
            new_ids.add(entry.entry_id)
            previous = old_index.get(entry.entry_id)
            if previous is not None and previous[0] != kind:
                previous = None
            if previous is None:
                report.added_entries.append(entry.entry_id)
            for field in entry.field_names():
                value = getattr(entry, field)
                if previous is None:
                    changed = not is_blank(value)
                else:
                    changed = getattr(previous[1], field) != value
                if changed:
                    report.changed_fields.append(FieldRef(entry_id=entry.entry_id, field=field))

        self.document.data = new
        for ref in report.changed_fields:
            if is_blank(self.get_value(ref)):
                self.provenance.entries.pop(ref.key, None)
            else:
                self._mark(ref, origin, confidence, reason)

        for entry_id in sorted(old_ids - new_ids):
            self.provenance.drop_entry(entry_id)
            report.removed_entries.append(entry_id)
            report.removed_blocks.extend(self._remove_bound_blocks(entry_id))

        self._reconcile_blocks(report, origin, confidence, reason)
        self._touch()

        logger.info(
            "projection_replaced",
            doc_id=self.document.doc_id,
            origin=origin,
            changed=len(report.changed_fields),
            added=len(report.added_entries),
            removed=len(report.removed_entries),
            skipped_dirty=len(report.skipped_dirty),
        )
        return report

    # -- persistence boundary ----------------------------------------------

    def check_consistency(self) -> list[str]:
        """List internal inconsistencies (empty when the document is sound)."""
        problems = []
        seen: set[str] = set()
        entry_ids = set()
        for _, entry in self.data.iter_entries():
            if entry.entry_id in entry_ids:
                problems.append(f"duplicate entry id {entry.entry_id}")
            entry_ids.add(entry.entry_id)
        for section in self.document.sections:
            for block in section.blocks:
                if block.block_id in seen:
                    problems.append(f"duplicate block id {block.block_id}")
                seen.add(block.block_id)
                if block.section_id != section.section_id:
                    problems.append(
                        f"block {block.block_id} claims section {block.section_id} "
                        f"but lives in {section.section_id}"
                    )
                if block.binding is None:
                    continue
                if block.binding.entry_id not in entry_ids:
                    problems.append(f"block {block.block_id} bound to missing entry {block.binding.entry_id}")
                elif not _has_field(_owner(self.data, block.binding.entry_id), block.binding.field):
                    problems.append(f"block {block.block_id} bound to unknown field {block.binding.key}")
        return problems

    def save(self) -> Document:
        """Hand a consistent snapshot of the document to ``on_save``.

        Returns:
            The snapshot passed to the callback

        Raises:
            DocumentInconsistent: If the document has dangling references
        """
        problems = self.check_consistency()
        if problems:
            logger.error("document_inconsistent", doc_id=self.document.doc_id, problems=problems)
            raise DocumentInconsistent(problems)

        snapshot = self.document.model_copy(deep=True)
        if self.on_save is not None:
            self.on_save(snapshot)
        logger.info("document_saved", doc_id=snapshot.doc_id, callback=self.on_save is not None)
        return snapshot

    def validation_summary(self) -> ValidationSummary:
        blocks = list(self.document.iter_blocks())
        return ValidationSummary(
            total_blocks=len(blocks),
            needs_review=sum(1 for block in blocks if block.origin == "ai_generated"),
            placeholders=sum(1 for field in PLACEHOLDER_FIELDS if is_blank(getattr(self.data, field))),
        )

    # -- internals -----------------------------------------------------------

    def _touch(self) -> None:
        self.document.updated_at = utc_now()

    def _owners(self):
        yield PROFILE_ENTRY_ID, self.data
        for _, entry in self.data.iter_entries():
            yield entry.entry_id, entry

    def _mark(self, ref: FieldRef, origin: Origin, confidence: float, reason: Optional[str]) -> None:
        if origin == "ai_generated":
            provenance = FieldProvenance(origin=origin, confidence=confidence, reason=reason)
        else:
            provenance = FieldProvenance(origin=origin)
        self.provenance.set(ref, provenance)

    def _write_field(self, ref: FieldRef, value: Any, origin: Origin) -> None:
        owner = _owner(self.data, ref.entry_id)
        if owner is None or not _has_field(owner, ref.field):
            logger.warning("write_field_unknown", ref=ref.key)
            return
        setattr(owner, ref.field, _coerce_value(owner, ref.field, value))
        self._mark(ref, origin, 1.0, None)

    def _ensure_bound_blocks(
        self,
        entry_id: str,
        owner: BaseModel,
        origin: Origin,
        confidence: float,
        reason: Optional[str],
    ) -> list[str]:
        if isinstance(owner, PortfolioData):
            section_id = "about"
        else:
            section_id = KIND_SECTIONS.get(type(owner).KIND)
            if section_id is None:
                return []
        created = []
        for field in _text_fields(owner):
            ref = FieldRef(entry_id=entry_id, field=field)
            if self.block_for(ref) is not None:
                continue
            provenance = self.provenance.get(ref)
            block_origin = provenance.origin if provenance else origin
            block = self.create_block(
                section_id,
                getattr(owner, field),
                origin=block_origin,
                confidence=provenance.confidence if provenance else confidence,
                auto_fill_reason=provenance.reason if provenance else reason,
                binding=ref,
            )
            created.append(block.block_id)
        return created

    def _remove_bound_blocks(self, entry_id: str) -> list[str]:
        removed = []
        for section in self.document.sections:
            keep = []
            for block in section.blocks:
                if block.binding is not None and block.binding.entry_id == entry_id:
                    removed.append(block.block_id)
                    self._dirty.discard(block.block_id)
                else:
                    keep.append(block)
            section.blocks = keep
        return removed

    def _reconcile_blocks(
        self,
        report: ReconcileReport,
        origin: Origin,
        confidence: float,
        reason: Optional[str],
    ) -> None:
        changed = {ref.key for ref in report.changed_fields}
        for block in list(self.document.iter_blocks()):
            if block.binding is None or block.binding.key not in changed:
                continue
            value = self.get_value(block.binding)
            text = value if isinstance(value, str) else ""
            if block.text == text:
                continue
            if block.block_id in self._dirty:
                report.skipped_dirty.append(block.block_id)
                logger.info("reconcile_skipped_dirty", block_id=block.block_id, ref=block.binding.key)
                continue
            block.text = text
            block.origin = origin
            block.confidence = confidence if origin == "ai_generated" else 1.0
            block.auto_fill_reason = reason if origin == "ai_generated" else None
            block.updated_at = utc_now()
            report.updated_blocks.append(block.block_id)

        for entry_id, owner in list(self._owners()):
            report.created_blocks.extend(
                self._ensure_bound_blocks(entry_id, owner, origin, confidence, reason)
            )

    @staticmethod
    def _carry_entry_ids(old: PortfolioData, new: PortfolioData) -> None:
        """Give new entries the ids of the old entries they replace.

        An id the collaborator echoed back is kept for its first claimant;
        any later entry repeating it is a copy and gets a fresh id. Otherwise
        the entry takes the id of the old entry at the same position of the
        same kind, unless another new entry already claimed that id.
        """
        seen: set[str] = set()
        copies: set[int] = set()
        for kind in ENTRY_KINDS:
            for entry in new.entries(kind):
                if entry.entry_id in seen:
                    duplicate = entry.entry_id
                    entry.entry_id = generate_entry_id(kind)
                    copies.add(id(entry))
                    logger.info(
                        "duplicate_entry_id_reassigned", kind=kind, entry_id=duplicate, new_id=entry.entry_id
                    )
                seen.add(entry.entry_id)

        for kind in ENTRY_KINDS:
            old_entries = old.entries(kind)
            old_ids = [entry.entry_id for entry in old_entries]
            for index, entry in enumerate(new.entries(kind)):
                if id(entry) in copies or entry.entry_id in old_ids or index >= len(old_ids):
                    continue
                candidate = old_ids[index]
                if candidate in seen:
                    continue
                seen.discard(entry.entry_id)
                entry.entry_id = candidate
                seen.add(candidate)
