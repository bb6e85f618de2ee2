from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.filesystem.document_repository import FileSystemDocumentRepository
from adapters.filesystem.json_utils import OrjsonDocumentParser, dump_json_bytes
from adapters.layout.tree import TreeLayoutEngine
from app.config import AppSettings, load_settings
from domain.paths import display_path
from domain.ports.documents import DocumentParseError
from domain.services.document_source import DocumentSource

app = typer.Typer(no_args_is_help=True)
console = Console()


def _settings(config_path: Path | None) -> AppSettings:
    try:
        return load_settings(config_path)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc


def _layout_engine(settings: AppSettings) -> TreeLayoutEngine:
    return TreeLayoutEngine(settings.layout.to_layout_config())


@app.command("layout")
def layout(
    input_path: Path = typer.Argument(..., help="JSON document or directory of documents."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Layout file (or directory when the input is a directory).",
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _settings(config_path)
    engine = _layout_engine(settings)
    repo = FileSystemDocumentRepository()

    if input_path.is_dir():
        output_dir = output or Path("data/layouts")
        try:
            pairs = repo.load_all_with_paths(input_path)
        except DocumentParseError as exc:
            console.print(f"[red]Invalid JSON:[/] {exc}")
            raise typer.Exit(code=1) from exc
        if not pairs:
            console.print(f"[yellow]No JSON documents found in {input_path}[/]")
            raise typer.Exit(code=0)
        for path, document in pairs:
            target_path = output_dir / f"{path.stem}.layout.json"
            repo.save_layout(engine.build_layout(document), target_path)
            console.print(f"[green]Wrote[/] {target_path}")
        return

    try:
        document = repo.load(input_path)
    except FileNotFoundError as exc:
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1) from exc
    except DocumentParseError as exc:
        console.print(f"[red]Invalid JSON:[/] {exc}")
        raise typer.Exit(code=1) from exc

    result = engine.build_layout(document)
    if output is None:
        typer.echo(dump_json_bytes(result.to_dict()).decode("utf-8"))
        return
    repo.save_layout(result, output)
    console.print(f"[green]Wrote[/] {output}")


@app.command("summary")
def summary(
    input_path: Path = typer.Argument(..., help="JSON document to summarize."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _settings(config_path)
    try:
        document = FileSystemDocumentRepository().load(input_path)
    except (FileNotFoundError, DocumentParseError) as exc:
        console.print(f"[red]Cannot read document:[/] {exc}")
        raise typer.Exit(code=1) from exc

    result = _layout_engine(settings).build_layout(document)
    table = Table(title=f"{input_path.name}: {len(result.nodes)} nodes, {len(result.edges)} edges")
    table.add_column("Path")
    table.add_column("Kind")
    table.add_column("Depth", justify="right")
    table.add_column("Slots", justify="right")
    table.add_column("Fields", justify="right")
    table.add_column("Position", justify="right")
    for node in result.nodes:
        table.add_row(
            display_path(node.node_id),
            node.kind.value,
            str(node.depth),
            str(node.subtree_size),
            str(len(node.primitive_fields)),
            f"{node.position.x:g}, {node.position.y:g}",
        )
    console.print(table)


@app.command("format")
def format_document(
    input_path: Path = typer.Argument(..., help="JSON document to reformat."),
    minify: bool = typer.Option(False, "--minify", help="Write compact JSON."),
    in_place: bool = typer.Option(False, "--in-place", help="Overwrite the input file."),
) -> None:
    repo = FileSystemDocumentRepository()
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)

    try:
        source = DocumentSource(OrjsonDocumentParser(), repo.load_text(input_path))
        text = source.minify_text() if minify else source.format_text()
    except (DocumentParseError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot format: invalid JSON:[/] {exc}")
        raise typer.Exit(code=1) from exc

    if in_place:
        repo.save_text(text + "\n", input_path)
        console.print(f"[green]Formatted[/] {input_path}")
        return
    typer.echo(text)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to settings)."),
    port: Optional[int] = typer.Option(None, help="Bind port (defaults to settings)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    import uvicorn

    from app.web_main import create_app

    settings = _settings(config_path)
    uvicorn.run(
        create_app(settings),
        host=host or settings.server.host,
        port=port or settings.server.port,
    )


if __name__ == "__main__":
    app()
