"""
CLI for PixelPrompt.

Generates and enhances prompts against the remote AI service, manages the
generation history and settings, downloads images and runs the HTTP proxy.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pixelprompt import __version__
from pixelprompt.catalog import MAX_BATCH_SIZE, MIN_BATCH_SIZE, SIZES, STYLES, size_values, style_ids
from pixelprompt.config import GLOBAL_CONFIG_FILE, Config
from pixelprompt.downloads import ImageDownloader
from pixelprompt.generators.chat import AIClient
from pixelprompt.images import format_generation_time
from pixelprompt.models import GenerationOptions, SettingsKeyError, UserSettings
from pixelprompt.session import GenerationSession
from pixelprompt.storage import HistoryStore, JsonFileStore, SettingsStore

console = Console()


def _stores(config: Config) -> tuple[HistoryStore, SettingsStore]:
    store = JsonFileStore(config.data_path)
    return HistoryStore(store, max_items=config.defaults.max_history_items), SettingsStore(store)


def _parse_setting_value(key: str, value: str):
    """Convert a CLI string into the type a settings field expects."""
    attr = UserSettings.FIELDS.get(key, key)
    if attr in ("auto_enhance_prompts", "save_history"):
        lowered = value.lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise click.BadParameter(f"{key} expects true or false")
    return value


def _print_settings(settings: UserSettings, system_prompt: str) -> None:
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.to_dict().items():
        table.add_row(key, str(value))
    table.add_row("systemPrompt", system_prompt or "[dim](default)[/dim]")
    console.print(table)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """PixelPrompt - AI image generation and prompt enhancement."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("setup-key")
@click.option("--api-key", help="AI service API key")
@click.option("--customer-id", help="AI service customer id")
@click.option("--endpoint", help="AI service chat-completions endpoint")
def setup_key(api_key: str, customer_id: str, endpoint: str):
    """Configure AI service credentials."""
    cfg = Config.load()

    if api_key:
        cfg.service.api_key = api_key
    if customer_id:
        cfg.service.customer_id = customer_id
    if endpoint:
        cfg.service.endpoint = endpoint

    cfg.save()
    console.print(f"[green]Configuration saved to {GLOBAL_CONFIG_FILE}[/green]")


@main.command("check-config")
def check_config():
    """Check configuration status."""
    cfg = Config.load()
    issues = cfg.validate()

    console.print("[bold]AI Service:[/bold]")
    console.print(f"  Endpoint: {cfg.service.endpoint}")
    console.print(f"  API key: {'[green]configured[/green]' if cfg.service.api_key else '[red]missing[/red]'}")
    console.print(f"  Customer id: {'[green]configured[/green]' if cfg.service.customer_id else '[red]missing[/red]'}")
    console.print(f"  Data directory: {cfg.data_path}")

    if issues:
        console.print("\n[red]Configuration issues:[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration looks good![/green]")


@main.command()
@click.argument("prompt", nargs=-1, required=True)
@click.option("--size", type=click.Choice(size_values()), default=None, help="Image size (default from settings)")
@click.option("--style", type=click.Choice(style_ids()), default=None, help="Style preset (default from settings)")
@click.option("--count", "-n", type=click.IntRange(MIN_BATCH_SIZE, MAX_BATCH_SIZE), default=1, help="Images to generate (1-4)")
@click.option("--enhance/--no-enhance", default=None, help="Enhance the prompt first (default from settings)")
@click.option("--system-prompt", default=None, help="Override the system prompt for this request")
def generate(prompt: tuple, size: Optional[str], style: Optional[str], count: int, enhance: Optional[bool], system_prompt: Optional[str]):
    """Generate images from a prompt."""
    prompt_text = " ".join(prompt)
    config = Config.load()
    history, settings_store = _stores(config)
    settings = settings_store.load()

    size = size or settings.default_size
    style = style if style is not None else (settings.default_style or None)
    if enhance is None:
        enhance = settings.auto_enhance_prompts

    with AIClient.from_config(config) as client:
        session = GenerationSession(client, history=history, settings=settings_store)

        if enhance:
            with console.status("Enhancing prompt..."):
                enhanced = session.enhance(prompt_text, style)
            if enhanced.success:
                console.print(f"[dim]Enhanced prompt:[/dim] {enhanced.enhanced_prompt}")
                prompt_text = enhanced.enhanced_prompt
            else:
                console.print(f"[yellow]Prompt enhancement failed: {enhanced.error}. Using original prompt.[/yellow]")

        options = GenerationOptions(
            prompt=prompt_text,
            size=size,
            style=style,
            system_prompt=system_prompt or settings_store.get_system_prompt() or None,
            batch_count=count,
        )

        with console.status(f"Generating {count} image(s)..."):
            state = session.generate(options)

    if not state.images:
        console.print(f"[red]Error: {state.error}[/red]")
        sys.exit(1)

    table = Table(title=f"Generated {len(state.images)} image(s)")
    table.add_column("#", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Time")
    table.add_column("URL")
    for i, image in enumerate(state.images, 1):
        table.add_row(
            str(i),
            image.id,
            format_generation_time(image.generation_time) if image.generation_time is not None else "",
            image.url,
        )
    console.print(table)

    if state.error:
        console.print(f"[yellow]Warning: {state.error}[/yellow]")


@main.command("enhance")
@click.argument("prompt", nargs=-1, required=True)
@click.option("--style", type=click.Choice(style_ids()), default=None, help="Style context for the enhancement")
def enhance_cmd(prompt: tuple, style: Optional[str]):
    """Enhance a prompt with richer visual detail."""
    prompt_text = " ".join(prompt)
    config = Config.load()
    _, settings_store = _stores(config)

    with AIClient.from_config(config) as client:
        session = GenerationSession(client, settings=settings_store)
        with console.status("Enhancing prompt..."):
            result = session.enhance(prompt_text, style)

    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        sys.exit(1)

    console.print(Panel(result.enhanced_prompt, title="Enhanced prompt"))


@main.group(invoke_without_command=True)
@click.option("--limit", "-n", default=None, type=int, help="Number of images to show")
@click.pass_context
def history(ctx, limit: Optional[int]):
    """Browse past generations."""
    if ctx.invoked_subcommand is not None:
        return

    config = Config.load()
    store, _ = _stores(config)
    limit = limit or config.defaults.history_view_items
    all_images = store.get_history()
    images = all_images[:limit]

    if not images:
        console.print("[dim]No generation history yet.[/dim]")
        return

    table = Table(title=f"Recent Generations ({len(all_images)})")
    table.add_column("ID", style="cyan")
    table.add_column("Prompt")
    table.add_column("Style")
    table.add_column("Size")
    table.add_column("Time")

    for image in images:
        table.add_row(
            image.id,
            image.prompt[:40] + ("..." if len(image.prompt) > 40 else ""),
            image.style or "",
            image.size,
            format_generation_time(image.generation_time) if image.generation_time is not None else "",
        )

    console.print(table)


@history.command("remove")
@click.argument("image_id")
def history_remove(image_id: str):
    """Remove one image from history."""
    store, _ = _stores(Config.load())
    if store.remove(image_id):
        console.print(f"[green]Removed {image_id}[/green]")
    else:
        console.print(f"[yellow]No image with id {image_id}[/yellow]")


@history.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def history_clear(yes: bool):
    """Delete all history."""
    if not yes and not click.confirm("Clear all generation history?"):
        console.print("Cancelled")
        return
    store, _ = _stores(Config.load())
    store.clear()
    console.print("[green]History cleared[/green]")


@main.command()
@click.argument("image_ids", nargs=-1)
@click.option("--all", "all_images", is_flag=True, help="Download every image in history")
@click.option("--out", "out_dir", type=click.Path(file_okay=False), default=None, help="Output directory")
def download(image_ids: tuple, all_images: bool, out_dir: Optional[str]):
    """Download images from history."""
    config = Config.load()
    store, _ = _stores(config)

    if all_images:
        images = store.get_history()
    else:
        images = []
        for image_id in image_ids:
            image = store.get(image_id)
            if image is None:
                console.print(f"[yellow]No image with id {image_id}, skipping[/yellow]")
            else:
                images.append(image)

    if not images:
        console.print("[dim]Nothing to download.[/dim]")
        return

    target = Path(out_dir or config.defaults.download_dir)
    with ImageDownloader(target, delay=config.defaults.download_delay) as downloader:
        if len(images) == 1:
            path = downloader.download_image(images[0])
            saved = [path] if path else []
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.percentage:>3.0f}%"),
                console=console,
            ) as progress:
                task = progress.add_task("Downloading", total=len(images))
                saved = downloader.download_multiple(
                    images,
                    on_progress=lambda done, total, pct: progress.update(task, completed=done),
                )

        for path in saved:
            console.print(f"[green]Saved[/green] {path}")
        if downloader.state.error:
            console.print(f"[yellow]{downloader.state.error}[/yellow]")
            if not saved:
                sys.exit(1)


@main.group(invoke_without_command=True)
@click.pass_context
def settings(ctx):
    """Show or change user settings."""
    if ctx.invoked_subcommand is None:
        _, store = _stores(Config.load())
        _print_settings(store.load(), store.get_system_prompt())


@settings.command("set")
@click.argument("key")
@click.argument("value")
def settings_set(key: str, value: str):
    """Change one setting (e.g. defaultSize 512x512)."""
    _, store = _stores(Config.load())
    try:
        updated = store.update(**{key: _parse_setting_value(key, value)})
    except SettingsKeyError:
        console.print(f"[red]Unknown setting: {key}. Valid keys: {', '.join(UserSettings.FIELDS)}[/red]")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    _print_settings(updated, store.get_system_prompt())


@settings.command("reset")
def settings_reset():
    """Restore default settings and clear the system prompt."""
    _, store = _stores(Config.load())
    _print_settings(store.reset(), "")


@settings.command("export")
@click.argument("path", type=click.Path(dir_okay=False))
def settings_export(path: str):
    """Write settings and system prompt to a JSON file."""
    _, store = _stores(Config.load())
    Path(path).write_text(json.dumps(store.export_settings(), indent=2))
    console.print(f"[green]Settings exported to {path}[/green]")


@settings.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def settings_import(path: str):
    """Load settings from an exported JSON file."""
    _, store = _stores(Config.load())
    try:
        data = json.loads(Path(path).read_text())
        updated = store.import_settings(data)
    except SettingsKeyError as e:
        console.print(f"[red]Unknown setting in file: {e}[/red]")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Failed to import settings: {e}[/red]")
        sys.exit(1)
    _print_settings(updated, store.get_system_prompt())


@main.command("system-prompt")
@click.argument("text", nargs=-1)
@click.option("--clear", is_flag=True, help="Revert to the built-in system prompt")
def system_prompt(text: tuple, clear: bool):
    """Show or set the system prompt override."""
    _, store = _stores(Config.load())
    if clear:
        store.set_system_prompt("")
        console.print("[green]System prompt cleared[/green]")
    elif text:
        store.set_system_prompt(" ".join(text))
        console.print("[green]System prompt saved[/green]")
    else:
        current = store.get_system_prompt()
        console.print(current or "[dim](using built-in system prompt)[/dim]")


@main.command()
def styles():
    """List style presets."""
    table = Table(title="Styles")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Description")
    for style in STYLES:
        table.add_row(style.id, style.name, style.description)
    console.print(table)


@main.command()
def sizes():
    """List supported image sizes."""
    table = Table(title="Sizes")
    table.add_column("Value", style="cyan")
    table.add_column("Width")
    table.add_column("Height")
    for size in SIZES:
        table.add_row(size.value, str(size.width), str(size.height))
    console.print(table)


@main.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Port")
def serve(host: Optional[str], port: Optional[int]):
    """Run the HTTP proxy."""
    import uvicorn

    from pixelprompt.server import create_app

    config = Config.load()
    for issue in config.validate():
        console.print(f"[yellow]Warning: {issue}[/yellow]")

    uvicorn.run(
        create_app(config=config),
        host=host or config.defaults.host,
        port=port or config.defaults.port,
    )


if __name__ == "__main__":
    main()
