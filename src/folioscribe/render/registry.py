"""Built-in template descriptors and the registry that resolves them.

The registry is the single source of truth for per-template capabilities.
The compiler, the auto-filler and the CLI all go through
``supported_fields()`` rather than branching on template ids.
"""

from typing import Iterable, Mapping, Optional

from folioscribe.models.template import (
    OPTIONAL_FIELDS,
    ColorTokens,
    DarkModeTokens,
    DesignSystem,
    LayoutTokens,
    TemplateDescriptor,
    TemplateSection,
    TypographyTokens,
)
from folioscribe.services.exceptions import UnknownTemplate


MINIMAL = TemplateDescriptor(
    id="minimal",
    name="Minimalist",
    description="Centered header, card grid for projects, timeline for experience",
    skeleton="minimal.html.j2",
    design_system=DesignSystem(
        colors=ColorTokens(
            primary="#000000", secondary="#666666", background="#ffffff",
            text="#191919", accent="#0070f3", border="#e5e5e5",
        ),
        dark_mode=DarkModeTokens(background="#191919", text="#ffffff", accent="#4493f8", border="#333333"),
        typography=TypographyTokens(
            font_family='-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif',
            heading_size="2.5rem", body_size="1rem", line_height="1.6",
        ),
        layout=LayoutTokens(max_width="900px", padding="2rem", section_gap="4rem", column_gap="2rem"),
    ),
    features=("dark mode", "two-column cards", "minimal design"),
    sections=(
        TemplateSection(id="contact", name="Contact", required=True),
        TemplateSection(id="about", name="About", required=True),
        TemplateSection(id="projects", name="Projects"),
        TemplateSection(id="skills", name="Skills"),
        TemplateSection(id="experience", name="Experience"),
        TemplateSection(id="education", name="Education"),
        TemplateSection(id="certifications", name="Certifications"),
    ),
    field_support={
        "location": False,
        "achievements": True,
        "education": True,
        "awards": False,
        "certifications": True,
    },
)

CLEAN = TemplateDescriptor(
    id="clean",
    name="Clean Layout",
    description="Sidebar profile with a professional card grid",
    skeleton="clean.html.j2",
    design_system=DesignSystem(
        colors=ColorTokens(
            primary="#2c3e50", secondary="#7f8c8d", background="#ffffff",
            text="#2c3e50", accent="#3498db", border="#ecf0f1",
        ),
        dark_mode=DarkModeTokens(background="#202020", text="#ecf0f1", accent="#5dade2", border="#34495e"),
        typography=TypographyTokens(
            font_family='"Inter", -apple-system, BlinkMacSystemFont, sans-serif',
            heading_size="2.25rem", body_size="1rem", line_height="1.7",
        ),
        layout=LayoutTokens(max_width="1200px", padding="3rem", section_gap="3rem", column_gap="2.5rem"),
    ),
    features=("sidebar", "grid layout", "structured sections"),
    sections=(
        TemplateSection(id="contact", name="Contact", required=True),
        TemplateSection(id="about", name="About", required=True),
        TemplateSection(id="skills", name="Skills"),
        TemplateSection(id="experience", name="Career"),
        TemplateSection(id="projects", name="Projects"),
        TemplateSection(id="awards", name="Awards & Certificates"),
    ),
    field_support={
        "location": True,
        "achievements": True,
        "education": False,
        "awards": True,
        "certifications": False,
    },
)

COLORFUL = TemplateDescriptor(
    id="colorful",
    name="Colorful Layout",
    description="Gradient hero with colourful cards",
    skeleton="colorful.html.j2",
    design_system=DesignSystem(
        colors=ColorTokens(
            primary="#5B47E0", secondary="#8B7FE8", background="#F8F9FE",
            text="#2D3748", accent="#FF6B6B", border="#E2E8F0",
        ),
        dark_mode=DarkModeTokens(background="#1A202C", text="#F7FAFC", accent="#FF8787", border="#2D3748"),
        typography=TypographyTokens(
            font_family='"Pretendard", -apple-system, BlinkMacSystemFont, sans-serif',
            heading_size="2.5rem", body_size="1.05rem", line_height="1.75",
        ),
        layout=LayoutTokens(max_width="1100px", padding="2.5rem", section_gap="3.5rem", column_gap="2rem"),
    ),
    features=("colourful cards", "gradients"),
    sections=(
        TemplateSection(id="contact", name="Contact", required=True),
        TemplateSection(id="about", name="About Me", required=True),
        TemplateSection(id="experience", name="Experience"),
        TemplateSection(id="projects", name="Projects"),
        TemplateSection(id="skills", name="Skills"),
    ),
    field_support={
        "location": False,
        "achievements": True,
        "education": False,
        "awards": False,
        "certifications": False,
    },
)

ELEGANT = TemplateDescriptor(
    id="elegant",
    name="Elegant Layout",
    description="Purple gradient header with generous typography",
    skeleton="elegant.html.j2",
    design_system=DesignSystem(
        colors=ColorTokens(
            primary="#8B5CF6", secondary="#A78BFA", background="#FAFAFA",
            text="#1F2937", accent="#EC4899", border="#E5E7EB",
        ),
        dark_mode=DarkModeTokens(background="#111827", text="#F9FAFB", accent="#F472B6", border="#374151"),
        typography=TypographyTokens(
            font_family='"Noto Sans KR", -apple-system, BlinkMacSystemFont, sans-serif',
            heading_size="2.75rem", body_size="1.1rem", line_height="1.8",
        ),
        layout=LayoutTokens(max_width="1000px", padding="3rem", section_gap="5rem", column_gap="3rem"),
    ),
    features=("elegant typography", "pastel colours"),
    sections=(
        TemplateSection(id="contact", name="Contact", required=True),
        TemplateSection(id="about", name="About", required=True),
        TemplateSection(id="experience", name="Experience"),
        TemplateSection(id="projects", name="Projects"),
        TemplateSection(id="skills", name="Skills"),
    ),
    field_support={
        "location": False,
        "achievements": True,
        "education": False,
        "awards": False,
        "certifications": False,
    },
)

BUILTIN_TEMPLATES = (MINIMAL, CLEAN, COLORFUL, ELEGANT)


class TemplateRegistry:
    """Resolves template ids to descriptors."""

    def __init__(self, templates: Iterable[TemplateDescriptor] = BUILTIN_TEMPLATES):
        self._templates = {template.id: template for template in templates}

    def get(self, template_id: str) -> TemplateDescriptor:
        """Return the descriptor for ``template_id``.

        Raises:
            UnknownTemplate: If no template has that id
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise UnknownTemplate(template_id) from None

    def ids(self) -> list[str]:
        return list(self._templates)

    def all(self) -> list[TemplateDescriptor]:
        return list(self._templates.values())

    def supported_fields(
        self,
        template_id: str,
        override: Optional[Mapping[str, bool]] = None,
    ) -> dict[str, bool]:
        """Effective field-support matrix for a template.

        Every optional field appears in the result; ``override`` entries win
        over the descriptor's own matrix.
        """
        descriptor = self.get(template_id)
        matrix = {field: descriptor.supports(field) for field in OPTIONAL_FIELDS}
        if override:
            matrix.update({field: bool(value) for field, value in override.items()})
        return matrix


default_registry = TemplateRegistry()
