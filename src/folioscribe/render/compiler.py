"""Template compiler: canonical portfolio data -> complete HTML document.

``compile()`` is a pure function of (template id, data, support override).
The same inputs always produce byte-identical output; nothing random or
time-dependent is interpolated.

Steps:
1. Resolve the descriptor (UnknownTemplate if absent)
2. Normalize: coerce unsupported optional fields to empty, substitute
   placeholders for missing required scalars
3. Render free text through the markdown-lite renderer
4. Strip AI-provenance marker spans (output is provenance-agnostic)
5. Interpolate into the template's Jinja2 skeleton
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pydantic import ValidationError

from folioscribe.models.portfolio import PortfolioData, is_blank
from folioscribe.models.template import TemplateDescriptor
from folioscribe.render.markdown_lite import (
    render_markdown_lite,
    strip_provenance_markers,
)
from folioscribe.render.registry import TemplateRegistry, default_registry
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Template-agnostic placeholders for required scalars
PLACEHOLDERS = {
    "name": "Portfolio Owner",
    "title": "Software Developer",
    "email": "contact@example.com",
    "phone": "+82 10-0000-0000",
    "github": "github.com/username",
    "about": "Introduce yourself here.",
}

# Fallback section titles; descriptor titles override these
DEFAULT_SECTION_TITLES = {
    "contact": "Contact",
    "about": "About",
    "skills": "Skills",
    "projects": "Projects",
    "experience": "Experience",
    "education": "Education",
    "awards": "Awards",
    "certifications": "Certifications",
}

PortfolioInput = Union[PortfolioData, Mapping[str, Any], None]


def _text(value: Any, fallback: str = "") -> str:
    """Clean a scalar for interpolation: markers stripped, blanks -> fallback."""
    if is_blank(value):
        return fallback
    return strip_provenance_markers(str(value)).strip() or fallback


def _text_list(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple)):
        return []
    return [_text(value) for value in values if not is_blank(value)]


def initials_of(name: str) -> str:
    """First letter of every word of ``name``, upper-cased.

    Example:
        >>> initials_of("Grace Hopper")
        'GH'
    """
    return "".join(part[0] for part in name.split() if part).upper()


def _external_href(value: str) -> str:
    """Turn a bare host/path into an https URL; keep explicit schemes."""
    if value.startswith(("http://", "https://", "mailto:")):
        return value
    return f"https://{value}"


def _coerce_data(data: PortfolioInput) -> PortfolioData:
    if isinstance(data, PortfolioData):
        return data
    if data is None:
        return PortfolioData()
    try:
        return PortfolioData.model_validate(dict(data))
    except (ValidationError, TypeError, ValueError) as e:
        # A live preview must always render something
        logger.warning("compile_input_invalid", error=str(e))
        return PortfolioData()


class TemplateCompiler:
    """Compiles portfolio data into self-contained HTML documents."""

    def __init__(self, registry: TemplateRegistry = default_registry):
        self.registry = registry
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def compile(
        self,
        template_id: str,
        data: PortfolioInput,
        field_support_override: Optional[Mapping[str, bool]] = None,
    ) -> str:
        """Compile ``data`` with the template ``template_id``.

        Args:
            template_id: Registered template id
            data: PortfolioData or a raw mapping of the same shape
            field_support_override: Optional per-field support overrides

        Returns:
            Complete HTML document string

        Raises:
            UnknownTemplate: If the template id is not registered
        """
        descriptor = self.registry.get(template_id)
        support = self.registry.supported_fields(template_id, field_support_override)
        portfolio = _coerce_data(data)

        context = self.normalize(descriptor, portfolio, support)
        template = self.env.get_template(descriptor.skeleton)
        html = strip_provenance_markers(template.render(**context))

        logger.info(
            "template_compiled",
            template_id=template_id,
            html_length=len(html),
            projects=len(context["projects"]),
            experience=len(context["experience"]),
        )
        return html

    def normalize(
        self,
        descriptor: TemplateDescriptor,
        data: PortfolioData,
        support: Mapping[str, bool],
    ) -> dict[str, Any]:
        """Build the render context.

        Unsupported optional fields are emptied here, before rendering, so no
        skeleton ever sees (or references) their data.
        """
        name = _text(data.name, PLACEHOLDERS["name"])
        github = _text(data.github, PLACEHOLDERS["github"])

        titles = dict(DEFAULT_SECTION_TITLES)
        titles.update({section.id: section.name for section in descriptor.sections})
        for section_id, title in data.section_titles.items():
            if not is_blank(title):
                titles[section_id] = _text(title)

        about = render_markdown_lite(_text(data.about)) or render_markdown_lite(PLACEHOLDERS["about"])

        return {
            "template": descriptor,
            "tokens": descriptor.design_system,
            "titles": titles,
            "name": name,
            "initials": initials_of(name),
            "title": _text(data.title, PLACEHOLDERS["title"]),
            "email": _text(data.email, PLACEHOLDERS["email"]),
            "phone": _text(data.phone, PLACEHOLDERS["phone"]),
            "github": github,
            "github_href": _external_href(github),
            "location": _text(data.location) if support.get("location") else "",
            "about": about,
            "skill_categories": self._skill_categories(data),
            "projects": self._projects(data),
            "experience": self._experience(data, support.get("achievements", False)),
            "education": self._education(data) if support.get("education") else [],
            "awards": self._awards(data) if support.get("awards") else [],
            "certifications": _text_list(data.certifications) if support.get("certifications") else [],
        }

    def _skill_categories(self, data: PortfolioData) -> list[dict[str, Any]]:
        categories = [
            {
                "label": _text(category.category, "Skills"),
                "icon": _text(category.icon, "•"),
                "skills": _text_list(category.skills),
            }
            for category in data.skill_categories
        ]
        categories = [category for category in categories if category["skills"]]
        if not categories and _text_list(data.skills):
            categories = [{"label": "Skills", "icon": "•", "skills": _text_list(data.skills)}]
        return categories

    def _projects(self, data: PortfolioData) -> list[dict[str, Any]]:
        projects = []
        for project in data.projects:
            links = [
                (label, _external_href(_text(value)))
                for label, value in (("Site", project.url), ("GitHub", project.github), ("Demo", project.demo))
                if not is_blank(value)
            ]
            projects.append({
                "name": _text(project.name, "Untitled project"),
                "description": render_markdown_lite(_text(project.description)),
                "period": _text(project.period),
                "role": _text(project.role),
                "company": _text(project.company),
                "tech": _text_list(project.tech),
                "results": _text_list(project.results),
                "links": links,
            })
        return projects

    def _experience(self, data: PortfolioData, with_achievements: bool) -> list[dict[str, Any]]:
        return [
            {
                "position": _text(exp.position, "Position"),
                "company": _text(exp.company),
                "duration": _text(exp.duration),
                "description": render_markdown_lite(_text(exp.description)),
                "achievements": _text_list(exp.achievements) if with_achievements else [],
            }
            for exp in data.experience
        ]

    def _education(self, data: PortfolioData) -> list[dict[str, Any]]:
        return [
            {
                "school": _text(edu.school, "School"),
                "degree": _text(edu.degree),
                "period": _text(edu.period),
                "description": render_markdown_lite(_text(edu.description)),
            }
            for edu in data.education
        ]

    def _awards(self, data: PortfolioData) -> list[dict[str, Any]]:
        return [
            {
                "title": _text(award.title, "Award"),
                "organization": _text(award.organization),
                "year": _text(award.year),
                "description": render_markdown_lite(_text(award.description)),
            }
            for award in data.awards
        ]


def compile_portfolio(
    template_id: str,
    data: PortfolioInput,
    field_support_override: Optional[Mapping[str, bool]] = None,
) -> str:
    """Compile with a default-registry compiler."""
    return TemplateCompiler().compile(template_id, data, field_support_override)
