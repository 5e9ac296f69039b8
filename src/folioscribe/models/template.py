"""Template descriptor models.

A descriptor is static configuration, never user data: display metadata,
design tokens, the ordered section list and the field-support matrix that
decides which optional fields the template's layout can render.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


SupportedField = Literal["location", "achievements", "education", "awards", "certifications"]

OPTIONAL_FIELDS: tuple[str, ...] = ("location", "achievements", "education", "awards", "certifications")


class ColorTokens(BaseModel):
    primary: str
    secondary: str
    background: str
    text: str
    accent: str
    border: str

    model_config = {"frozen": True}


class DarkModeTokens(BaseModel):
    background: str
    text: str
    accent: str
    border: str

    model_config = {"frozen": True}


class TypographyTokens(BaseModel):
    font_family: str
    heading_size: str
    body_size: str
    line_height: str

    model_config = {"frozen": True}


class LayoutTokens(BaseModel):
    max_width: str
    padding: str
    section_gap: str
    column_gap: str

    model_config = {"frozen": True}


class DesignSystem(BaseModel):
    """Design tokens the template's <style> block is derived from."""

    colors: ColorTokens
    dark_mode: Optional[DarkModeTokens] = None
    typography: TypographyTokens
    layout: LayoutTokens

    model_config = {"frozen": True}


class TemplateSection(BaseModel):
    """One section of a template's layout."""

    id: str = Field(..., description="Section id (contact, about, projects, ...)")
    name: str = Field(..., description="Default display title")
    required: bool = Field(default=False)

    model_config = {"frozen": True}


class TemplateDescriptor(BaseModel):
    """Static description of one visual template."""

    id: str
    name: str
    description: str = ""
    skeleton: str = Field(..., description="Jinja2 skeleton file name under render/templates")
    lang: str = "en"
    design_system: DesignSystem
    features: tuple[str, ...] = ()
    sections: tuple[TemplateSection, ...]
    field_support: dict[str, bool] = Field(
        ...,
        description="Optional field name -> whether this template can render it"
    )

    model_config = {"frozen": True}

    def supports(self, field: str) -> bool:
        """Whether the template renders ``field``. Unknown fields are unsupported."""
        return bool(self.field_support.get(field, False))

    def section_title(self, section_id: str) -> str:
        for section in self.sections:
            if section.id == section_id:
                return section.name
        return section_id.replace("_", " ").title()
