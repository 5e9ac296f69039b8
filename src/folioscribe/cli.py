"""CLI entry point for Folioscribe."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from folioscribe import __version__
from folioscribe.config.loader import load_config
from folioscribe.document.model import DocumentModel
from folioscribe.editing.autofill import AutoFiller
from folioscribe.editing.collaborator import LLMCollaborator, LLMExpander
from folioscribe.editing.nl_pipeline import NaturalLanguageEditPipeline
from folioscribe.models.config import Config
from folioscribe.models.portfolio import PortfolioData
from folioscribe.models.template import OPTIONAL_FIELDS
from folioscribe.preview.live import LivePreview
from folioscribe.preview.surface import InMemorySurface
from folioscribe.preview.synchronizer import PreviewSynchronizer
from folioscribe.quality.scorer import QualityScorer
from folioscribe.render.compiler import TemplateCompiler
from folioscribe.render.registry import default_registry
from folioscribe.services.exceptions import MalformedCollaboratorResponse, UnknownTemplate
from folioscribe.services.llm_client import LLMClient
from folioscribe.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()
# Status and progress for commands whose stdout carries data
err_console = Console(stderr=True)

BAND_STYLES = {"good": "green", "fair": "yellow", "poor": "red"}


def read_portfolio(source: str) -> PortfolioData:
    """
    Read a portfolio JSON document from a path, or stdin for "-".

    Raises:
        click.ClickException: If the file is missing or not a JSON object
    """
    try:
        raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Cannot read {source}: {e}")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{source} is not valid JSON: {e}")
    if not isinstance(parsed, dict):
        raise click.ClickException(f"{source} must contain a JSON object")

    try:
        return PortfolioData.model_validate(parsed)
    except ValidationError as e:
        raise click.ClickException(f"{source} is not a valid portfolio:\n{e}")


def write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        click.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    err_console.print(f"[green]Wrote[/green] {output}")


def dump_portfolio(data: PortfolioData) -> str:
    return json.dumps(data.model_dump(mode="json"), ensure_ascii=False, indent=2)


def get_config() -> Config:
    """
    Load configuration (file plus FOLIOSCRIBE_* overrides).

    Raises:
        click.ClickException: If the file has open permissions or fails validation
    """
    try:
        config = load_config()
        logger.info("config_loaded")
        return config
    except PermissionError as e:
        logger.error("config_permission_error", error=str(e))
        raise click.ClickException(str(e))
    except (ValueError, ValidationError) as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def require_llm(config: Config):
    if config.llm is None:
        raise click.ClickException(
            "No LLM configured. Add an 'llm' section to ~/.config/folioscribe/config.yaml "
            "or set FOLIOSCRIBE_LLM_ENDPOINT, FOLIOSCRIBE_LLM_API_KEY and FOLIOSCRIBE_LLM_MODEL."
        )
    return config.llm


def template_option(func):
    return click.option(
        "--template", "-t",
        "template_id",
        type=click.Choice(default_registry.ids()),
        default=None,
        help="Template id (default: preview.default_template from config)",
    )(func)


def resolve_template(template_id: Optional[str], config: Config) -> str:
    """Pick the requested template, else the configured default, and check it exists."""
    template_id = template_id or config.preview.default_template
    try:
        default_registry.get(template_id)
    except UnknownTemplate as e:
        raise click.ClickException(f"{e} (check preview.default_template in your config)")
    return template_id


@click.group()
@click.version_option(version=__version__, prog_name="folioscribe")
def cli():
    """Folioscribe: compose portfolios, fill gaps, edit in plain language and preview live."""
    configure_logging()


@cli.command()
def templates():
    """List the built-in templates and the optional fields each renders."""
    table = Table(title="Templates")
    table.add_column("id", style="bold")
    table.add_column("name")
    for field in OPTIONAL_FIELDS:
        table.add_column(field, justify="center")

    for descriptor in default_registry.all():
        support = default_registry.supported_fields(descriptor.id)
        table.add_row(
            descriptor.id,
            descriptor.name,
            *("[green]yes[/green]" if support[field] else "[dim]no[/dim]" for field in OPTIONAL_FIELDS),
        )
    console.print(table)


@cli.command(name="compile")
@click.argument("source")
@template_option
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write HTML here instead of stdout")
def compile_command(source: str, template_id: Optional[str], output: Optional[Path]):
    """
    Compile a portfolio JSON file into a standalone HTML page.

    Examples:
        folioscribe compile portfolio.json -t clean -o portfolio.html
        cat portfolio.json | folioscribe compile - > portfolio.html
    """
    config = get_config()
    template_id = resolve_template(template_id, config)
    data = read_portfolio(source)

    html = TemplateCompiler().compile(template_id, data)

    logger.info("compile_command_completed", template_id=template_id, html_length=len(html))
    write_output(html, output)


@cli.command()
@click.argument("text", required=False)
@click.option("--file", "-f", "text_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Score the contents of a file")
@click.option("--max-length", type=int, default=None, help="Target maximum length")
@click.option("--section", default="general", type=click.Choice(["general", "about", "project", "experience"]), help="Section type")
@click.option("--locale", type=click.Choice(["ko", "en"]), default=None, help="Term lists to use (default: from config)")
def score(text: Optional[str], text_file: Optional[Path], max_length: Optional[int], section: str, locale: Optional[str]):
    """
    Score text against the writing checklist.

    Examples:
        folioscribe score "Analyzed 3 months of data and learned ..." --locale en
        folioscribe score -f about.txt --section about
    """
    if text_file is not None:
        text = text_file.read_text(encoding="utf-8")
    elif text is None:
        text = click.get_text_stream("stdin").read()

    config = get_config()
    scorer = QualityScorer(locale or config.quality.locale)
    if max_length is None and section == "general":
        max_length = config.quality.max_length
    report = scorer.score(text, max_length=max_length, section_type=section)

    table = Table(title="Quality checks")
    table.add_column("check", style="bold")
    table.add_column("result", justify="center")
    table.add_column("detail")
    for check in report.checks.values():
        mark = "[green]pass[/green]" if check.passed else "[red]fail[/red]"
        table.add_row(check.name, mark, check.detail)
    console.print(table)

    style = BAND_STYLES[report.band]
    summary = (
        f"Score: [{style}]{report.score}[/{style}] ({report.passed}/{report.total}, {report.band})\n"
        f"Sentences: {report.sentence_count}  Words: {report.word_count}\n"
        f"Rhythm: {report.naturalness} (variation {report.coefficient:.2f}; a heuristic, not a verdict)"
    )
    console.print(Panel(summary, title="Summary"))
    for suggestion in report.suggestions:
        console.print(f"  • {suggestion}")


@cli.command()
@click.argument("source")
@click.argument("instruction")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON here instead of stdout")
@click.option("--lenient", is_flag=True, default=False, help="Accept any JSON object the collaborator returns")
def edit(source: str, instruction: str, output: Optional[Path], lenient: bool):
    """
    Apply a natural-language edit to a portfolio JSON file.

    Examples:
        folioscribe edit portfolio.json "Make the about section more concise"
    """
    config = get_config()
    llm_config = require_llm(config)
    data = read_portfolio(source)
    model = DocumentModel.from_portfolio(data, user_id="cli")

    validation = "lenient" if lenient else config.editing.validation
    pipeline = NaturalLanguageEditPipeline(LLMCollaborator(LLMClient(llm_config)), validation=validation)

    logger.info("edit_command_started", source=source, validation=validation)
    try:
        with err_console.status("[bold green]Waiting for the collaborator..."):
            result = asyncio.run(pipeline.apply_to(model, instruction))
    except MalformedCollaboratorResponse as e:
        raise click.ClickException(f"The edit was not applied: {e.reason}")
    except httpx.HTTPError as e:
        raise click.ClickException(f"The edit was not applied: {e}")

    changed = len(result.report.changed_fields) if result.report else 0
    err_console.print(f"[green]Edit applied[/green] ({changed} fields changed)")
    write_output(dump_portfolio(model.data), output)


@cli.command()
@click.argument("source")
@template_option
@click.option("--expand", is_flag=True, default=False, help="Also expand your own short texts with the LLM")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON here instead of stdout")
def autofill(source: str, template_id: Optional[str], expand: bool, output: Optional[Path]):
    """
    Fill empty fields with default text (marked for review).

    Examples:
        folioscribe autofill portfolio.json -t clean -o filled.json
        folioscribe autofill portfolio.json --expand
    """
    config = get_config()
    template_id = resolve_template(template_id, config)
    data = read_portfolio(source)
    model = DocumentModel.from_portfolio(data, user_id="cli")

    expander = LLMExpander(LLMClient(require_llm(config))) if expand else None
    report = asyncio.run(AutoFiller(expander=expander).fill(model, template_id))

    table = Table(title="Auto-filled fields")
    table.add_column("field")
    table.add_column("action")
    for ref in report.filled:
        table.add_row(model.provenance.legacy_key(ref, model.data), "[yellow]default[/yellow]")
    for ref in report.expanded:
        table.add_row(model.provenance.legacy_key(ref, model.data), "[cyan]expanded[/cyan]")
    for ref in report.failed:
        table.add_row(model.provenance.legacy_key(ref, model.data), "[red]expansion failed[/red]")
    err_console.print(table)

    write_output(dump_portfolio(model.data), output)


def reload_source(model: DocumentModel, source: Path):
    """Swap in the current contents of SOURCE as the user's own edits."""
    return model.replace_projection(read_portfolio(str(source)), origin="user_edited")


async def _watch(source: Path, live: LivePreview, surface: InMemorySurface, output: Path, interval: float) -> None:
    last_mtime = source.stat().st_mtime
    written = surface.html
    while True:
        await asyncio.sleep(interval)
        mtime = source.stat().st_mtime
        if mtime != last_mtime:
            last_mtime = mtime
            try:
                reload_source(live.model, source)
            except click.ClickException as e:
                console.print(f"[red]{e.message}[/red]")
                continue
            live.schedule()
        await live.wait_idle()
        if surface.html != written:
            written = surface.html
            output.write_text(written, encoding="utf-8")
            console.print(f"[green]Updated[/green] {output}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@template_option
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True, help="HTML file the preview is written to")
@click.option("--watch", is_flag=True, default=False, help="Keep running and refresh when SOURCE changes")
@click.option("--interval", type=float, default=0.5, show_default=True, help="Polling interval in seconds for --watch")
def preview(source: Path, template_id: Optional[str], output: Path, watch: bool, interval: float):
    """
    Render a live preview of a portfolio into an HTML file.

    With --watch, edits to SOURCE are re-rendered through the debounced
    preview pipeline, keeping the preview's head scripts and scroll state.
    """
    config = get_config()
    template_id = resolve_template(template_id, config)
    model = DocumentModel.from_portfolio(read_portfolio(str(source)), user_id="cli")
    surface = InMemorySurface()

    async def run() -> None:
        live = LivePreview(
            model,
            PreviewSynchronizer(surface),
            template_id=template_id,
            debounce_ms=config.preview.debounce_ms,
        )
        await live.render()
        output.write_text(surface.html, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
        if watch:
            try:
                await _watch(source, live, surface, output, interval)
            finally:
                await live.close()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("preview_watch_stopped")


if __name__ == "__main__":
    cli()
