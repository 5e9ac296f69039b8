"""Canonical portfolio projection used as compiler input.

The projection is a flat record: scalar contact fields, an about text,
skill categories and structured list entries. Every list entry carries a
durable ``entry_id`` so provenance can be keyed on (entry_id, field)
instead of on the entry's position in its list.

Input is deliberately lenient: ``None`` becomes the empty value, list
fields that are not lists become empty lists and unknown keys are dropped.
The projection round-trips through an external text generator, so it must
degrade rather than throw when that generator returns odd shapes.
"""

from typing import Any, ClassVar, Iterator, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from folioscribe.utils.ids import generate_entry_id


PROFILE_ENTRY_ID = "profile"

# Literal strings that upstream generators emit for "no value"
_MISSING_MARKERS = {"null", "undefined", "none", "nan"}


def is_blank(value: Any) -> bool:
    """Return True when a scalar value should be treated as missing.

    Example:
        >>> is_blank("  ")
        True
        >>> is_blank("null")
        True
        >>> is_blank("Jane")
        False
    """
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.lower() in _MISSING_MARKERS
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def clean_string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if not is_blank(value) else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if not is_blank(item) and not isinstance(item, (dict, list))]


def _clean_mapping(model_cls: type[BaseModel], data: Any) -> Any:
    """Coerce a raw mapping into something the model will accept."""
    if not isinstance(data, dict):
        return data
    cleaned: dict[str, Any] = {}
    fields = model_cls.model_fields
    for key, value in data.items():
        if value is None:
            continue  # let the default apply
        field = fields.get(key)
        if field is None:
            # Aliases (camelCase from generators) pass through untouched
            cleaned[key] = value
            continue
        default = field.get_default(call_default_factory=True)
        if isinstance(default, list) and key in model_cls.STRING_LIST_FIELDS:
            cleaned[key] = clean_string_list(value)
        elif isinstance(default, list):
            cleaned[key] = [item for item in value if isinstance(item, (dict, BaseModel))] if isinstance(value, list) else []
        elif isinstance(default, str):
            if isinstance(value, list):
                cleaned[key] = "\n".join(str(item) for item in value if not is_blank(item))
            else:
                cleaned[key] = value if isinstance(value, str) else str(value)
        else:
            cleaned[key] = value
    return cleaned


class PortfolioEntry(BaseModel):
    """Base class for structured list entries."""

    KIND: ClassVar[str] = "entry"
    STRING_LIST_FIELDS: ClassVar[frozenset[str]] = frozenset()
    TEXT_FIELDS: ClassVar[tuple[str, ...]] = ()

    entry_id: str = Field(default="", description="Durable entry identifier")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _lenient(cls, data: Any) -> Any:
        data = _clean_mapping(cls, data)
        if isinstance(data, dict) and is_blank(data.get("entry_id")):
            data["entry_id"] = generate_entry_id(cls.KIND)
        return data

    def field_names(self) -> list[str]:
        """Content field names (everything except entry_id)."""
        return [name for name in type(self).model_fields if name != "entry_id"]


class SkillCategory(PortfolioEntry):
    """A labelled group of skills."""

    KIND: ClassVar[str] = "skill_category"
    STRING_LIST_FIELDS: ClassVar[frozenset[str]] = frozenset({"skills"})

    category: str = ""
    icon: str = ""
    skills: list[str] = Field(default_factory=list)


class Project(PortfolioEntry):
    """A project record."""

    KIND: ClassVar[str] = "project"
    STRING_LIST_FIELDS: ClassVar[frozenset[str]] = frozenset({"tech", "results"})
    TEXT_FIELDS: ClassVar[tuple[str, ...]] = ("description",)

    name: str = ""
    description: str = ""
    period: str = ""
    role: str = ""
    company: str = ""
    tech: list[str] = Field(default_factory=list)
    url: str = ""
    github: str = ""
    demo: str = ""
    results: list[str] = Field(default_factory=list)


class Experience(PortfolioEntry):
    """A work experience record."""

    KIND: ClassVar[str] = "experience"
    STRING_LIST_FIELDS: ClassVar[frozenset[str]] = frozenset({"achievements"})
    TEXT_FIELDS: ClassVar[tuple[str, ...]] = ("description",)

    position: str = ""
    company: str = ""
    duration: str = ""
    description: str = ""
    achievements: list[str] = Field(default_factory=list)


class Education(PortfolioEntry):
    """An education record."""

    KIND: ClassVar[str] = "education"
    TEXT_FIELDS: ClassVar[tuple[str, ...]] = ("description",)

    school: str = ""
    degree: str = ""
    period: str = ""
    description: str = ""


class Award(PortfolioEntry):
    """An award or certificate record."""

    KIND: ClassVar[str] = "award"
    TEXT_FIELDS: ClassVar[tuple[str, ...]] = ("description",)

    title: str = ""
    organization: str = ""
    year: str = ""
    description: str = ""


# kind -> (PortfolioData attribute, entry class)
ENTRY_KINDS: dict[str, tuple[str, type[PortfolioEntry]]] = {
    SkillCategory.KIND: ("skill_categories", SkillCategory),
    Project.KIND: ("projects", Project),
    Experience.KIND: ("experience", Experience),
    Education.KIND: ("education", Education),
    Award.KIND: ("awards", Award),
}

PROFILE_FIELDS = ("name", "title", "email", "phone", "github", "location", "about", "skills", "certifications")
PROFILE_TEXT_FIELDS = ("about",)
REQUIRED_SCALARS = ("name", "title", "email")
# Fields the compiler substitutes a placeholder for when blank
PLACEHOLDER_FIELDS = ("name", "title", "email", "phone", "github", "about")


class PortfolioData(BaseModel):
    """Flattened projection of a document, consumed by the template compiler."""

    STRING_LIST_FIELDS: ClassVar[frozenset[str]] = frozenset({"skills", "certifications"})

    name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    github: str = ""
    location: str = ""
    about: str = ""
    skills: list[str] = Field(default_factory=list)
    skill_categories: list[SkillCategory] = Field(
        default_factory=list,
        validation_alias=AliasChoices("skill_categories", "skillCategories"),
    )
    projects: list[Project] = Field(default_factory=list)
    experience: list[Experience] = Field(
        default_factory=list,
        validation_alias=AliasChoices("experience", "experiences"),
    )
    education: list[Education] = Field(default_factory=list)
    awards: list[Award] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    section_titles: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("section_titles", "sectionTitles"),
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _lenient(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Camel-case aliases are cleaned under their canonical names
        for alias, canonical in (
            ("skillCategories", "skill_categories"),
            ("experiences", "experience"),
            ("sectionTitles", "section_titles"),
        ):
            if alias in data and canonical not in data:
                data[canonical] = data.pop(alias)
        data = _clean_mapping(cls, data)
        titles = data.get("section_titles")
        if titles is not None and not isinstance(titles, dict):
            data.pop("section_titles")
        elif isinstance(titles, dict):
            data["section_titles"] = {str(k): str(v) for k, v in titles.items() if not is_blank(v)}
        return data

    def entries(self, kind: str) -> list[PortfolioEntry]:
        """Return the live list holding entries of ``kind``."""
        attr, _ = ENTRY_KINDS[kind]
        return getattr(self, attr)

    def iter_entries(self) -> Iterator[tuple[str, PortfolioEntry]]:
        """Yield (kind, entry) for every structured entry in list order."""
        for kind in ENTRY_KINDS:
            for entry in self.entries(kind):
                yield kind, entry

    def find_entry(self, entry_id: str) -> Optional[tuple[str, PortfolioEntry]]:
        """Locate an entry by id. Returns (kind, entry) or None."""
        for kind, entry in self.iter_entries():
            if entry.entry_id == entry_id:
                return kind, entry
        return None

    def entry_ids(self) -> set[str]:
        """All entry ids plus the profile pseudo-entry."""
        return {PROFILE_ENTRY_ID} | {entry.entry_id for _, entry in self.iter_entries()}

    def to_transport(self) -> dict[str, Any]:
        """Serialize for the generation collaborator (entry ids included)."""
        return self.model_dump(mode="json")
