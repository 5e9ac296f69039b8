"""Block, Section and Document models for the editing surface."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from folioscribe.models.portfolio import PortfolioData
from folioscribe.models.provenance import FieldRef, Origin, ProvenanceMap
from folioscribe.utils.ids import utc_now


class EditHistoryEntry(BaseModel):
    """One user-committed edit of a block (not one keystroke)."""

    text: str = Field(..., description="Text the block held once the edit was accepted")
    edited_at: datetime = Field(default_factory=utc_now)
    edited_by: str = Field(..., description="Editor identifier")

    model_config = {"frozen": True}


class Block(BaseModel):
    """Atomic unit of authored text with provenance metadata."""

    block_id: str = Field(
        ...,
        description="Identifier unique within the document"
    )

    section_id: str = Field(
        ...,
        description="Owning section"
    )

    text: str = Field(
        default="",
        description="Current content, may contain markdown-lite markup"
    )

    origin: Origin = Field(
        ...,
        description="Who produced the current text"
    )

    confidence: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Generator confidence, used for UI signalling only"
    )

    auto_fill_reason: Optional[str] = Field(
        default=None,
        description="Why the text was generated (ai_generated blocks only)"
    )

    edit_history: list[EditHistoryEntry] = Field(
        default_factory=list,
        description="Append-only list of committed edits"
    )

    binding: Optional[FieldRef] = Field(
        default=None,
        description="Projection field this block mirrors, if any"
    )

    created_at: datetime = Field(default_factory=utc_now)
    created_by: str = Field(default="system")
    updated_at: Optional[datetime] = None

    model_config = {"frozen": False}  # Mutated in place by edit operations


class Section(BaseModel):
    """Named, ordered collection of blocks."""

    section_id: str
    title: str = ""
    blocks: list[Block] = Field(default_factory=list)

    model_config = {"frozen": False}


class Document(BaseModel):
    """A composed document: sections of blocks plus its canonical projection."""

    doc_id: str
    user_id: str
    sections: list[Section] = Field(default_factory=list)
    data: PortfolioData = Field(default_factory=PortfolioData)
    provenance: ProvenanceMap = Field(default_factory=ProvenanceMap)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": False}

    def iter_blocks(self):
        for section in self.sections:
            yield from section.blocks

    def find_block(self, block_id: str) -> Optional[Block]:
        for block in self.iter_blocks():
            if block.block_id == block_id:
                return block
        return None

    def find_section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.section_id == section_id:
                return section
        return None


class ValidationSummary(BaseModel):
    """Review counters shown next to the editing surface."""

    total_blocks: int
    needs_review: int
    placeholders: int
