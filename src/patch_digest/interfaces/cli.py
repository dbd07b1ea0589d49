from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from bs4 import BeautifulSoup
from rich import print
from rich.table import Table

from patch_digest.core.classifier import score_changes
from patch_digest.core.config import DEFAULT_CONFIG_PATH, load_digest_config
from patch_digest.core.diagnostics import ExtractionDiagnostics, write_extraction_log
from patch_digest.core.formatting import SECTIONS, format_details, format_summary
from patch_digest.core.lexicon import load_lexicon
from patch_digest.core.models import PatchContent
from patch_digest.core.pipelines import extract_patch_content
from patch_digest.providers.patch_pages import (
    InvalidVersionError,
    PatchDigestError,
    PatchPageClient,
    validate_version,
)


app = typer.Typer(no_args_is_help=True, add_completion=False)

DEFAULT_LOG_DIR = Path("logs/extractions")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _print_content(content: PatchContent, *, as_json: bool, details: bool) -> None:
    if as_json:
        typer.echo(json.dumps(content.to_dict(), ensure_ascii=False, indent=2))
        return

    typer.echo(format_summary(content))
    typer.echo("")

    if content.character_changes:
        table = Table(title="Чемпионы")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Чемпион")
        table.add_column("Вердикт")
        table.add_column("Изменения", justify="right")
        for idx, record in enumerate(content.character_changes, start=1):
            card = score_changes(record)
            table.add_row(str(idx), record.name, card.verdict.value, str(len(record.changes)))
        print(table)

    if details:
        for section in SECTIONS:
            typer.echo("")
            typer.echo(format_details(content, section))


@app.command("parse")
def parse_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Сохранённая HTML-страница"),
    version: str = typer.Option(..., "--version", "-v", help="Версия патча, например 14.1"),
    as_json: bool = typer.Option(False, "--json", help="Вывести результат как JSON"),
    details: bool = typer.Option(False, "--details", help="Показать подробности по всем разделам"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Путь к patch_digest.yaml"),
    lexicon_path: Optional[Path] = typer.Option(None, "--lexicon", help="Путь к lexicon.yaml"),
    debug_log: bool = typer.Option(False, "--debug-log", help="Записать диагностику в logs/extractions"),
    verbose: bool = typer.Option(False, "--verbose", help="Подробный лог"),
):
    _setup_logging(verbose)
    try:
        version = validate_version(version)
    except InvalidVersionError as exc:
        _fail(str(exc))

    doc = BeautifulSoup(file.read_text(encoding="utf-8"), "html.parser")
    diagnostics = ExtractionDiagnostics() if debug_log else None
    content = extract_patch_content(
        doc,
        version,
        url=None,
        lexicon=load_lexicon(lexicon_path) if lexicon_path else None,
        settings=load_digest_config(config),
        diagnostics=diagnostics,
    )
    _print_content(content, as_json=as_json, details=details)

    if diagnostics is not None:
        path = write_extraction_log(diagnostics, DEFAULT_LOG_DIR)
        print(f"[dim]Диагностика записана: {path}[/dim]")


@app.command("fetch")
def fetch_cmd(
    version: Optional[str] = typer.Argument(None, help="Версия патча; по умолчанию текущая"),
    as_json: bool = typer.Option(False, "--json", help="Вывести результат как JSON"),
    details: bool = typer.Option(False, "--details", help="Показать подробности по всем разделам"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Путь к patch_digest.yaml"),
    debug_log: bool = typer.Option(False, "--debug-log", help="Записать диагностику в logs/extractions"),
    verbose: bool = typer.Option(False, "--verbose", help="Подробный лог"),
):
    _setup_logging(verbose)
    diagnostics = ExtractionDiagnostics() if debug_log else None
    try:
        with PatchPageClient(load_digest_config(config)) as client:
            content = client.fetch_patch_content(version, diagnostics=diagnostics)
    except PatchDigestError as exc:
        _fail(f"Не удалось получить патч: {exc}")

    _print_content(content, as_json=as_json, details=details)
    if content.url and not as_json:
        print(f"[dim]{content.url}[/dim]")

    if diagnostics is not None:
        path = write_extraction_log(diagnostics, DEFAULT_LOG_DIR)
        print(f"[dim]Диагностика записана: {path}[/dim]")


@app.command("classify")
def classify_cmd(
    lines: List[str] = typer.Argument(..., help="Строки изменений, например 'Base AD: 60 → 65'"),
    name: Optional[str] = typer.Option(None, "--name", help="Имя чемпиона для пояснений разработчиков"),
):
    card = score_changes(lines, name=name)
    table = Table(title="Оценка изменений")
    table.add_column("improve", justify="right", style="green")
    table.add_column("reduce", justify="right", style="red")
    table.add_column("diff", justify="right")
    table.add_column("verdict", style="bold")
    table.add_row(str(card.improve), str(card.reduce), str(card.diff), card.verdict.value)
    print(table)
    if card.reasoning:
        print(f"[dim]Пояснение: {card.reasoning}[/dim]")


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
