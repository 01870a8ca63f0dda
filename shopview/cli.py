#!/usr/bin/env python3
"""
cli.py - Entry point for SHOPVIEW - browse a shop catalog from the terminal
"""

try:
    import asyncio
    import sys
    import argparse
    from dataclasses import dataclass
    from pathlib import Path
    from rich.console import Console
    from rich.markup import escape
    from rich.prompt import Prompt
    from rich.table import Table
    from typing import Optional
    import shopview as pkg
    from . import logger
    from .api.shop_client import ShopApiClient
    from .browse.controller import FetchStatus, QueryStateController
    from .browse.location import HistoryLocation
    from .config import ShopviewConfig, load_config
    from .facets.storage import InMemorySessionStorage
    from .query.canonical import ALLOWED_PAGE_SIZES, SortKey
    from .query.codec import form_from_link, share_link
    from .query.types import FacetKind, Product
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()

COMMANDS: tuple[tuple[str, str], ...] = (
    ("s <text>", "Set the search text (empty clears it)"),
    ("t <tag>", "Toggle a tag in the draft"),
    ("a <author id>", "Toggle an author in the draft"),
    ("c <code>", "Set the currency filter (empty clears it)"),
    ("min <price> / max <price>", "Set the price bounds in major units (empty clears)"),
    ("sort <key>", "Sort by " + ", ".join(key.value for key in SortKey)),
    ("size <n>", "Page size, one of " + ", ".join(str(size) for size in ALLOWED_PAGE_SIZES)),
    ("apply", "Apply the draft filters"),
    ("reset", "Reset all filters"),
    ("n / p / g <page>", "Next, previous or a specific page"),
    ("back / fwd", "Move through history"),
    ("open <link>", "Open a shared link or query string"),
    ("f <text>", "Filter the facet lists"),
    ("r", "Retry the last fetch"),
    ("share", "Print a shareable link"),
    ("q", "Quit"),
)


@dataclass
class _ViewState:
    facet_filter: str = ""


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _ui_prompt(label: str, default: str | None = None) -> str:
    if default is None:
        return Prompt.ask(label)
    return Prompt.ask(label, default=default)


def format_price(cents: int | None, currency: str = "") -> str:
    if cents is None:
        return "-"
    amount = f"{cents // 100:,}.{cents % 100:02d}"
    return f"{amount} {currency}".strip()


def parse_command(raw: str) -> tuple[str, str]:
    text = (raw or "").strip()
    if not text:
        return "", ""
    verb, _, arg = text.partition(" ")
    return verb.lower(), arg.strip()


def render_results(out: Console, controller: QueryStateController) -> None:
    page = controller.page_result
    if controller.is_loading:
        out.print("[grey50]Loading products...[/grey50]")
    if controller.error:
        out.print(f"[red]{escape(controller.error)}[/red] (type [bold]r[/bold] to retry)")
    if page is None:
        return
    if not page.items and not controller.is_loading and not controller.error:
        out.print("No products match your filters.")
        return

    table = Table(title=f"Products (page {page.index} of {max(page.total_pages, 1)}, {page.total_items:,} total)")
    table.add_column("Name", style="cyan")
    table.add_column("Price", style="green", justify="right")
    table.add_column("Author", style="yellow")
    table.add_column("Tags")
    for item in page.items:
        if isinstance(item, Product):
            table.add_row(
                escape(item.name),
                format_price(item.price_cents, item.currency),
                escape(item.author_display_name or "-"),
                escape(" ".join(f"#{tag}" for tag in item.tags)),
            )
        else:
            table.add_row(escape(str(item)), "", "", "")
    out.print(table)

    buttons = []
    for index in controller.page_buttons():
        buttons.append(f"[bold][{index}][/bold]" if index == controller.applied.page else str(index))
    if buttons:
        out.print("Pages: " + " ".join(buttons))


def render_facets(out: Console, controller: QueryStateController, facet_filter: str = "") -> None:
    selected = {
        FacetKind.TAGS: set(controller.draft.tags),
        FacetKind.AUTHORS: set(controller.draft.authors),
        FacetKind.CURRENCIES: {controller.draft.currency.upper()} if controller.draft.currency else set(),
    }
    for kind in FacetKind:
        options = controller.visible_facets(kind, facet_filter)
        if not options:
            suffix = " (loading...)" if controller.is_loading_facets else ""
            out.print(f"{kind.value.title()}: [grey50]none available{suffix}[/grey50]")
            continue
        rendered = []
        for option in options:
            text = escape(f"{option.display} ({option.count})")
            if kind is FacetKind.AUTHORS and option.label:
                text = escape(f"{option.label} [{option.value}] ({option.count})")
            rendered.append(f"[bold green]{text}[/bold green]" if option.value in selected[kind] else text)
        out.print(f"{kind.value.title()}: " + ", ".join(rendered))


def render_status(out: Console, controller: QueryStateController) -> None:
    draft = controller.draft
    summary = (
        f"Draft: search={draft.search!r} tags={draft.tags} authors={draft.authors} "
        f"currency={draft.currency or '-'} price={draft.min_price or '-'}..{draft.max_price or '-'} "
        f"sort={draft.sort} size={draft.page_size}"
    )
    out.print(escape(summary))
    for message in controller.draft_errors:
        out.print(f"[yellow]{escape(message)}[/yellow]")
    if controller.is_dirty and not controller.is_draft_invalid:
        out.print("[yellow]Unapplied changes. Type 'apply' to update results.[/yellow]")
    if controller.facet_status is FetchStatus.FAILED:
        out.print("[grey50]Filter options could not be refreshed; showing the last known values.[/grey50]")


def render(out: Console, controller: QueryStateController, view: _ViewState) -> None:
    render_results(out, controller)
    out.print()
    render_facets(out, controller, view.facet_filter)
    render_status(out, controller)


def handle_command(
    controller: QueryStateController,
    location: HistoryLocation,
    config: ShopviewConfig,
    view: _ViewState,
    verb: str,
    arg: str,
) -> bool:
    """Apply one CLI command. Returns False when the user asked to quit."""
    if verb in {"q", "quit", "exit"}:
        return False
    if verb in {"s", "search"}:
        controller.update_draft(search=arg)
    elif verb in {"t", "tag"}:
        controller.toggle_draft_tag(arg)
    elif verb in {"a", "author"}:
        controller.toggle_draft_author(arg)
    elif verb in {"c", "currency"}:
        controller.update_draft(currency=arg)
    elif verb == "min":
        controller.update_draft(min_price=arg)
    elif verb == "max":
        controller.update_draft(max_price=arg)
    elif verb == "sort":
        controller.update_draft(sort=arg)
    elif verb == "size":
        controller.update_draft(page_size=arg)
    elif verb == "apply":
        if controller.is_draft_invalid:
            _ui_warn("Fix the highlighted filters before applying.")
        elif not controller.apply():
            _ui_info("Filters unchanged.")
    elif verb == "reset":
        controller.reset()
    elif verb in {"n", "next"}:
        if not controller.next_page():
            _ui_warn("Already on the last page.")
    elif verb in {"p", "prev"}:
        if not controller.previous_page():
            _ui_warn("Already on the first page.")
    elif verb in {"g", "goto"}:
        if not arg.isdigit() or not controller.go_to_page(int(arg)):
            _ui_warn(f"Page '{arg}' is out of range.")
    elif verb == "back":
        if not location.back():
            _ui_warn("No earlier history entry.")
    elif verb in {"fwd", "forward"}:
        if not location.forward():
            _ui_warn("No later history entry.")
    elif verb == "open":
        location.navigate(form_from_link(arg))
    elif verb in {"f", "filter"}:
        view.facet_filter = arg
    elif verb in {"r", "retry"}:
        controller.retry()
    elif verb == "share":
        _ui_info(share_link(config.share_base_url, controller.applied))
    elif verb in {"h", "help", "?"}:
        show_commands()
    else:
        _ui_warn("Unknown command. Type 'h' for help.")
    return True


def show_commands() -> None:
    table = Table(title="Commands")
    table.add_column("Command", style="cyan", no_wrap=True)
    table.add_column("Action")
    for command, description in COMMANDS:
        table.add_row(command, description)
    console.print(table)


async def browse(config: ShopviewConfig, initial: str = "", once: bool = False) -> int:
    """Run the browse loop. Returns the process exit code."""
    location = HistoryLocation(form_from_link(initial))
    client = ShopApiClient(config.api)
    controller = QueryStateController(
        location,
        client,
        client,
        InMemorySessionStorage(),
        settings=config.browse,
    )
    view = _ViewState()
    try:
        controller.start()
        await controller.settle()
        render(console, controller, view)
        if once:
            return 1 if controller.result_status is FetchStatus.FAILED else 0
        while True:
            raw = await asyncio.to_thread(_ui_prompt, "Command", "")
            verb, arg = parse_command(raw)
            if not verb:
                continue
            if not handle_command(controller, location, config, view, verb, arg):
                return 0
            await controller.settle()
            console.print()
            render(console, controller, view)
    finally:
        controller.dispose()
        await client.close()


def show_help(parser: argparse.ArgumentParser) -> None:
    print(f"SHOPVIEW v{getattr(pkg, '__version__', '0.0.0')} - Browse a shop catalog")
    print()
    parser.print_help()


def resolve_config_path(args_config: Optional[str]) -> Path:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p

    cwd_candidate = Path.cwd() / "config.toml"
    if cwd_candidate.exists():
        return cwd_candidate

    repo_root = Path(__file__).resolve().parent.parent
    root_candidate = repo_root / "config.toml"
    if root_candidate.exists() and (
        (repo_root / ".git").exists() or (repo_root / "pyproject.toml").exists()
    ):
        return root_candidate
    return cwd_candidate


def main():
    """Entry point"""
    parser = argparse.ArgumentParser(add_help=False)
    for args, kwargs in (
        (("-h", "--help"), {"action": "store_true", "help": "Show help"}),
        (("-c", "--config"), {"metavar": "PATH", "help": "Path to config.toml (file or directory)"}),
        (("-d", "--debug"), {"action": "store_true", "help": "Debug mode with API calls, JSON responses, timestamps"}),
        (("-l", "--log-file"), {"metavar": "PATH", "help": "Also write log output to this file"}),
        (("--once",), {"action": "store_true", "help": "Render the first page and exit"}),
    ):
        parser.add_argument(*args, **kwargs)
    parser.add_argument('query', nargs='?', default="", help='Shared link or query string, e.g. "tags=red&page=2"')

    try:
        args = parser.parse_args()
        if args.help:
            show_help(parser)
            sys.exit(0)

        config = load_config(resolve_config_path(args.config))
        log_file = Path(args.log_file).expanduser() if args.log_file else None
        with logger.ShopviewLogger(log_file=log_file, debug=args.debug, console=console) as log:
            logger.set_logger(log)
            if not args.once:
                _ui_info("Type 'h' for the list of commands.")
            code = asyncio.run(browse(config, args.query, once=args.once))
        sys.exit(code)
    except KeyboardInterrupt:
        _ui_info("Goodbye!")
        sys.exit(0)
    except Exception as e:
        _ui_error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
