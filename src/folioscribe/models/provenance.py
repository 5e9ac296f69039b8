"""Provenance tracking for projection fields."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from folioscribe.models.portfolio import PROFILE_ENTRY_ID, PortfolioData


Origin = Literal["user_provided", "ai_generated", "user_edited"]


class FieldRef(BaseModel):
    """Address of one field of one entry (or of the profile pseudo-entry)."""

    entry_id: str = Field(..., description="Durable entry id, or 'profile' for scalar fields")
    field: str = Field(..., description="Field name on the entry")

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        return f"{self.entry_id}/{self.field}"

    @classmethod
    def from_key(cls, key: str) -> "FieldRef":
        entry_id, _, field = key.rpartition("/")
        return cls(entry_id=entry_id, field=field)

    @classmethod
    def profile(cls, field: str) -> "FieldRef":
        return cls(entry_id=PROFILE_ENTRY_ID, field=field)


class FieldProvenance(BaseModel):
    """Who produced a field's current value."""

    origin: Origin = Field(..., description="Origin classification of the current value")

    confidence: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Generator confidence; meaningful only for ai_generated"
    )

    reason: Optional[str] = Field(
        default=None,
        description="Why the value was generated (ai_generated only)"
    )

    model_config = {"frozen": True}


class ProvenanceMap(BaseModel):
    """Provenance side map keyed on (entry_id, field).

    Entry ids are durable, so reordering a list never re-attributes a
    field's provenance to a different entry.
    """

    entries: dict[str, FieldProvenance] = Field(default_factory=dict)

    def get(self, ref: FieldRef) -> Optional[FieldProvenance]:
        return self.entries.get(ref.key)

    def set(self, ref: FieldRef, provenance: FieldProvenance) -> None:
        self.entries[ref.key] = provenance

    def origin_of(self, ref: FieldRef, default: Origin = "user_provided") -> Origin:
        found = self.entries.get(ref.key)
        return found.origin if found else default

    def drop_entry(self, entry_id: str) -> int:
        """Forget every field of an entry. Returns the number of fields dropped."""
        prefix = f"{entry_id}/"
        doomed = [key for key in self.entries if key.startswith(prefix)]
        for key in doomed:
            del self.entries[key]
        return len(doomed)

    def refs(self) -> list[FieldRef]:
        return [FieldRef.from_key(key) for key in self.entries]

    def ai_generated_refs(self) -> list[FieldRef]:
        return [
            FieldRef.from_key(key)
            for key, prov in self.entries.items()
            if prov.origin == "ai_generated"
        ]

    def legacy_key(self, ref: FieldRef, data: PortfolioData) -> str:
        """Render the positional "<kind>_<index>_<field>" form of a ref.

        Only for display; positions shift when entries are deleted.
        """
        if ref.entry_id == PROFILE_ENTRY_ID:
            return ref.field
        located = data.find_entry(ref.entry_id)
        if located is None:
            return ref.key
        kind, entry = located
        index = data.entries(kind).index(entry)
        return f"{kind}_{index}_{ref.field}"
