from __future__ import annotations

import argparse
import logging
import os
import queue
import select
import subprocess
import sys
import threading
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any
import termios
import tty

from dotenv import load_dotenv
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from busy import MatrixRain
from feeds import (
    ALL_SECTIONS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MAX_ITEMS,
    FeedClient,
    HackerNewsClient,
    Item,
    RssFeedClient,
    Section,
)
from orchestrator import (
    DEFAULT_DEADLINE_SECONDS,
    FetchOrchestrator,
    OrchestratorError,
    OrchestratorSettings,
    SectionCache,
)
from palette import Command, CommandKind, CommandPalette
from summary import DEFAULT_SUMMARY_MODEL, summarize, summary_source_text

logger = logging.getLogger(__name__)

APP_NAME = "Hackertuah News"
MENU_ENTRIES = ("Summarize this post...", "Open this post...", "Close this menu")
STATUS_LOG_MAX = 12
SECTION_KEYS = {"T": Section.TOP, "A": Section.ASK, "S": Section.SHOW, "J": Section.JOBS}
SWITCH_TARGETS = {
    CommandKind.SWITCH_TOP: Section.TOP,
    CommandKind.SWITCH_ASK: Section.ASK,
    CommandKind.SWITCH_SHOW: Section.SHOW,
    CommandKind.SWITCH_JOBS: Section.JOBS,
}
BACKENDS = ("firebase", "rss")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Mode(Enum):
    NORMAL = "normal"
    MENU = "menu"
    SUMMARY = "summary"
    COMMAND_PALETTE = "command_palette"
    SEARCH = "search"


@dataclass
class AppConfig:
    backend: str
    section: Section
    max_items: int
    http_timeout_seconds: int
    deadline_seconds: float
    summary_model: str
    claude_api_key: str
    log_file: str
    log_level: str
    once: bool


@dataclass
class AppState:
    cache: SectionCache
    current_section: Section
    items: list[Item] = field(default_factory=list)
    filtered: list[int] = field(default_factory=list)
    selected_index: int = 0
    scroll_offset: int = 0
    mode: Mode = Mode.NORMAL
    menu_index: int = 0
    summary: str = ""
    search_query: str = ""
    status_message: str = ""
    status_log: list[str] = field(default_factory=list)
    palette: CommandPalette = field(default_factory=CommandPalette)


@dataclass
class Services:
    orchestrator: FetchOrchestrator
    summarize: Callable[[Item], tuple[str, str]]
    open_url: Callable[[str], str]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    if width <= 1:
        return value[:width]
    return f"{value[: width - 1]}…"


def human_age(published_at: datetime | None) -> str:
    if published_at is None:
        return "-"
    seconds = max(int((now_utc() - published_at).total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 48:
        return f"{hours}h"
    return f"{hours // 24}d"


def append_status_log(state: AppState, message: str, max_entries: int = STATUS_LOG_MAX) -> None:
    timestamp = now_utc().strftime("%H:%M:%S")
    state.status_log.append(f"[{timestamp}] {message}")
    if len(state.status_log) > max_entries:
        state.status_log = state.status_log[-max_entries:]


def set_status(state: AppState, message: str) -> None:
    state.status_message = message
    append_status_log(state, message)


def clamp_selection(index: int, rows: list[Any]) -> int:
    if not rows:
        return 0
    if index < 0:
        return 0
    if index >= len(rows):
        return len(rows) - 1
    return index


def cycle_selection(index: int, rows: list[Any], delta: int) -> int:
    if not rows:
        return 0
    return (index + delta) % len(rows)


def set_items(state: AppState, items: list[Item]) -> None:
    state.items = list(items)
    state.filtered = list(range(len(state.items)))
    state.selected_index = 0
    state.scroll_offset = 0


def selected_item(state: AppState) -> Item | None:
    if not state.filtered:
        return None
    position = clamp_selection(state.selected_index, state.filtered)
    return state.items[state.filtered[position]]


def filter_items(state: AppState) -> None:
    query = state.search_query.lower()
    if not query:
        state.filtered = list(range(len(state.items)))
    else:
        state.filtered = [
            index for index, item in enumerate(state.items) if query in item.title.lower()
        ]
    state.selected_index = 0
    state.scroll_offset = 0


def enter_search(state: AppState) -> None:
    state.mode = Mode.SEARCH
    state.search_query = ""
    filter_items(state)


def leave_search(state: AppState) -> None:
    chosen = state.filtered[state.selected_index] if state.filtered else 0
    state.mode = Mode.NORMAL
    state.search_query = ""
    state.filtered = list(range(len(state.items)))
    state.selected_index = clamp_selection(chosen, state.filtered)


def open_menu(state: AppState) -> None:
    state.mode = Mode.MENU
    state.menu_index = 0


def ensure_visible(state: AppState, height: int) -> None:
    height = max(1, height)
    if state.selected_index < state.scroll_offset:
        state.scroll_offset = state.selected_index
    elif state.selected_index >= state.scroll_offset + height:
        state.scroll_offset = state.selected_index - height + 1


def open_link(url: str) -> str:
    clean_url = url.strip()
    if not clean_url:
        return "No URL available for selected story."
    try:
        if sys.platform == "darwin":
            subprocess.Popen(["open", clean_url], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        else:
            webbrowser.open(clean_url, new=2)
        return ""
    except Exception as exc:
        return f"Failed to open link: {exc}"


def open_selected(state: AppState, services: Services, comments: bool = False) -> None:
    item = selected_item(state)
    if item is None:
        set_status(state, "No stories available to open.")
        return
    if comments:
        url, opened = item.comments_url, "Opened comments in browser"
    elif item.url:
        url, opened = item.url, "Opened in browser"
    else:
        url, opened = item.comments_url, "Opened discussion in browser"
    error = services.open_url(url)
    set_status(state, error or opened)


def refresh_current(state: AppState, services: Services, failure_prefix: str = "Refresh failed") -> None:
    section = state.current_section
    try:
        result = services.orchestrator.load_one(section)
    except OrchestratorError as exc:
        set_status(state, f"{failure_prefix}: {exc}")
        return
    if result.cancelled:
        set_status(state, result.message)
        return
    state.cache.put(section, result.items)
    set_items(state, result.items)
    set_status(state, result.message)


def refresh_all(state: AppState, services: Services) -> None:
    try:
        report = services.orchestrator.load_all(ALL_SECTIONS, state.cache)
    except OrchestratorError as exc:
        set_status(state, f"Failed to refresh all sections: {exc}")
        return
    if not report.cancelled:
        cached = state.cache.get(state.current_section)
        if cached is not None:
            set_items(state, cached)
    if report.diagnostics:
        for line in report.diagnostics:
            append_status_log(state, line)
        state.status_message = report.message
    else:
        set_status(state, report.message)


def show_section(state: AppState, section: Section, services: Services) -> None:
    state.current_section = section
    cached = state.cache.get(section)
    if cached is not None:
        set_items(state, cached)
        set_status(state, f"Switched to {section.label} stories")
        return
    refresh_current(state, services, failure_prefix="Failed to load stories")


def request_summary(state: AppState, services: Services) -> None:
    item = selected_item(state)
    if item is None:
        set_status(state, "No story selected.")
        return
    summary, error = services.summarize(item)
    if error:
        set_status(state, f"Failed to get summary: {error}")
        return
    state.summary = summary
    state.mode = Mode.SUMMARY


def execute_command(command: Command, state: AppState, services: Services) -> bool:
    kind = command.kind
    if kind is CommandKind.QUIT:
        return True
    if kind is CommandKind.OPEN_BROWSER:
        open_selected(state, services)
    elif kind is CommandKind.OPEN_COMMENTS:
        open_selected(state, services, comments=True)
    elif kind is CommandKind.SUMMARIZE:
        open_menu(state)
    elif kind is CommandKind.SEARCH:
        enter_search(state)
    elif kind in SWITCH_TARGETS:
        show_section(state, SWITCH_TARGETS[kind], services)
    elif kind is CommandKind.REFRESH:
        refresh_current(state, services)
    elif kind is CommandKind.REFRESH_ALL:
        refresh_all(state, services)
    return False


def handle_normal_key(key: str, state: AppState, services: Services) -> bool:
    if key == "q":
        return True
    if key == "PALETTE":
        state.mode = Mode.COMMAND_PALETTE
        state.palette.reset()
    elif key == "/":
        enter_search(state)
    elif key in {"j", "DOWN"}:
        state.selected_index = cycle_selection(state.selected_index, state.filtered, 1)
    elif key in {"k", "UP"}:
        state.selected_index = cycle_selection(state.selected_index, state.filtered, -1)
    elif key == "R":
        refresh_all(state, services)
    elif key == "r":
        refresh_current(state, services)
    elif key in SECTION_KEYS:
        if state.current_section is not SECTION_KEYS[key]:
            show_section(state, SECTION_KEYS[key], services)
    elif key == "h":
        show_section(state, state.current_section.previous(), services)
    elif key == "l":
        show_section(state, state.current_section.next(), services)
    elif key == "ENTER":
        open_selected(state, services)
    elif key == "o":
        open_menu(state)
    elif key == "C":
        open_selected(state, services, comments=True)
    return False


def handle_menu_key(key: str, state: AppState, services: Services) -> bool:
    if key == "ESC":
        state.mode = Mode.NORMAL
    elif key in {"j", "DOWN"}:
        state.menu_index = (state.menu_index + 1) % len(MENU_ENTRIES)
    elif key in {"k", "UP"}:
        state.menu_index = (state.menu_index - 1) % len(MENU_ENTRIES)
    elif key == "ENTER":
        if state.menu_index == 0:
            request_summary(state, services)
        elif state.menu_index == 1:
            open_selected(state, services)
            state.mode = Mode.NORMAL
        else:
            state.mode = Mode.NORMAL
    return False


def handle_summary_key(key: str, state: AppState, services: Services) -> bool:
    if key == "ESC":
        state.summary = ""
        state.mode = Mode.NORMAL
    return False


def handle_palette_key(key: str, state: AppState, services: Services) -> bool:
    palette = state.palette
    if key == "ESC":
        state.mode = Mode.NORMAL
        palette.reset()
    elif key == "BACKSPACE":
        palette.backspace()
    elif key == "DOWN":
        palette.next_command()
    elif key == "UP":
        palette.previous_command()
    elif key == "ENTER":
        command = palette.selected()
        state.mode = Mode.NORMAL
        palette.reset()
        if command is not None:
            return execute_command(command, state, services)
    elif len(key) == 1 and key.isprintable():
        palette.type_char(key)
    return False


def handle_search_key(key: str, state: AppState, services: Services) -> bool:
    if key == "ESC":
        leave_search(state)
    elif key == "BACKSPACE":
        state.search_query = state.search_query[:-1]
        filter_items(state)
    elif key == "ENTER":
        has_match = bool(state.filtered)
        leave_search(state)
        if has_match:
            open_selected(state, services)
    elif key == "DOWN":
        state.selected_index = cycle_selection(state.selected_index, state.filtered, 1)
    elif key == "UP":
        state.selected_index = cycle_selection(state.selected_index, state.filtered, -1)
    elif len(key) == 1 and key.isprintable():
        state.search_query += key
        filter_items(state)
    return False


MODE_HANDLERS: dict[Mode, Callable[[str, AppState, Services], bool]] = {
    Mode.NORMAL: handle_normal_key,
    Mode.MENU: handle_menu_key,
    Mode.SUMMARY: handle_summary_key,
    Mode.COMMAND_PALETTE: handle_palette_key,
    Mode.SEARCH: handle_search_key,
}


def handle_key(key: str, state: AppState, services: Services) -> bool:
    if key == "QUIT":
        return True
    return MODE_HANDLERS[state.mode](key, state, services)


def render_section_bar(current: Section) -> Text:
    bar = Text(justify="center")
    for section in Section:
        style = "bold green reverse" if section is current else "green"
        bar.append(f" {section.label} ", style=style)
        bar.append(" ")
    return bar


def render_story_table(state: AppState, max_rows: int, empty_message: str) -> Table:
    table = Table(expand=True, show_edge=False, pad_edge=False)
    table.add_column("Sel", width=3)
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Title", ratio=1, no_wrap=True, overflow="ellipsis")
    table.add_column("Score", justify="right", width=6)
    table.add_column("By", width=16, no_wrap=True, overflow="ellipsis")
    table.add_column("Age", justify="right", width=5)

    window = state.filtered[state.scroll_offset : state.scroll_offset + max(1, max_rows)]
    for offset, item_index in enumerate(window):
        position = state.scroll_offset + offset
        item = state.items[item_index]
        is_selected = position == state.selected_index
        title_text = escape(truncate(item.title, 120))
        title_cell = f"[link={item.link}]{title_text}[/link]" if item.url else title_text
        table.add_row(
            ">" if is_selected else "",
            str(position + 1),
            title_cell,
            str(item.score),
            escape(item.author),
            human_age(item.published_at),
            style="bold black on green" if is_selected else "green",
        )

    if not window:
        table.add_row("", "-", empty_message, "-", "-", "-")
    return table


def render_menu_panel(menu_index: int) -> Panel:
    body = Text()
    for index, entry in enumerate(MENU_ENTRIES):
        style = "bold green reverse" if index == menu_index else "green"
        body.append(f"{entry}\n", style=style)
    return Panel(body, title="Options", border_style="green")


def render_summary_panel(summary: str) -> Panel:
    return Panel(Text(summary, style="green"), title="Claude Summary", border_style="green")


def render_palette_panel(palette: CommandPalette) -> Panel:
    table = Table(show_header=False, expand=True, show_edge=False, pad_edge=False)
    table.add_column("Sel", width=2)
    table.add_column("Command", style="green", no_wrap=True)
    table.add_column("Description", style="bright_black", overflow="ellipsis")
    chosen = palette.selected()
    for command in palette.visible_commands():
        is_selected = command is chosen
        table.add_row(
            ">" if is_selected else "",
            command.name,
            command.description,
            style="black on green" if is_selected else "",
        )
    if not palette.filtered:
        table.add_row("", "No matching commands", "")
    prompt = Text(f"> {palette.query}", style="bold green")
    return Panel(Group(prompt, table), title="Command Palette", border_style="green")


def render_overlay(state: AppState) -> Panel | None:
    if state.mode is Mode.MENU:
        return render_menu_panel(state.menu_index)
    if state.mode is Mode.SUMMARY:
        return render_summary_panel(state.summary)
    if state.mode is Mode.COMMAND_PALETTE:
        return render_palette_panel(state.palette)
    return None


def render_status_text(state: AppState, terminal_width: int) -> Text:
    hint = "j/k move | Enter open | o menu | / search | Ctrl-K commands | r/R refresh | T A S J h l sections | q quit"
    message = state.status_message or "Ready"
    return Text(truncate(f"{message} | {hint}", max(40, terminal_width - 4)), style="green")


def build_screen(state: AppState, terminal_width: int, terminal_height: int) -> Layout:
    search_height = 3 if state.mode is Mode.SEARCH else 0
    list_height = max(1, terminal_height - 3 - 3 - search_height - 1 - 3)
    ensure_visible(state, list_height)

    stories_panel = Panel(
        render_story_table(state, list_height, "No stories loaded. Press r to refresh."),
        border_style="green",
        padding=(0, 0),
    )
    body = Layout(name="body")
    overlay = render_overlay(state)
    if overlay is None:
        body.update(stories_panel)
    else:
        body.split_row(
            Layout(stories_panel, name="stories", ratio=3),
            Layout(overlay, name="overlay", ratio=2),
        )

    rows = [
        Layout(Panel(Text(APP_NAME, style="green", justify="center"), border_style="green"), name="title", size=3),
        Layout(Panel(render_section_bar(state.current_section), border_style="green"), name="sections", size=3),
        body,
    ]
    if state.mode is Mode.SEARCH:
        search_box = Panel(Text(f"/{state.search_query}", style="green"), title="Search", border_style="green")
        rows.append(Layout(search_box, name="search", size=3))
    rows.append(Layout(render_status_text(state, terminal_width), name="status", size=1))

    root = Layout(name="root")
    root.split_column(*rows)
    return root


def _line_input_worker(
    command_queue: queue.Queue[str],
    stop_event: threading.Event,
) -> None:
    while not stop_event.is_set():
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError):
            if stop_event.wait(0.2):
                break
            continue
        if line == "":
            if stop_event.wait(0.2):
                break
            continue
        for char in line.rstrip("\n"):
            command_queue.put(char)
        command_queue.put("ENTER")


ESCAPE_SEQUENCES = {"[A": "UP", "[B": "DOWN", "OA": "UP", "OB": "DOWN"}
CONTROL_KEYS = {"\r": "ENTER", "\n": "ENTER", "\x7f": "BACKSPACE", "\b": "BACKSPACE", "\x03": "QUIT", "\x0b": "PALETTE"}


def command_input_worker(
    command_queue: queue.Queue[str],
    stop_event: threading.Event,
) -> None:
    if not sys.stdin.isatty():
        _line_input_worker(command_queue, stop_event)
        return

    try:
        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
    except (OSError, termios.error):
        _line_input_worker(command_queue, stop_event)
        return

    try:
        tty.setcbreak(fd)
        while not stop_event.is_set():
            ready, _, _ = select.select([fd], [], [], 0.2)
            if not ready:
                continue
            data = os.read(fd, 1)
            key = data.decode("utf-8", errors="ignore")
            if not key:
                continue
            if key in CONTROL_KEYS:
                command_queue.put(CONTROL_KEYS[key])
                continue
            if key == "\x1b":
                sequence = ""
                while select.select([fd], [], [], 0.001)[0]:
                    sequence += os.read(fd, 1).decode("utf-8", errors="ignore")
                    if not sequence:
                        continue
                    if sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6:
                        break
                command_queue.put(ESCAPE_SEQUENCES.get(sequence, "ESC"))
                continue
            command_queue.put(key)
    finally:
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        except termios.error:
            pass


def next_key(command_queue: queue.Queue[str], timeout: float) -> str | None:
    try:
        if timeout <= 0:
            return command_queue.get_nowait()
        return command_queue.get(timeout=timeout)
    except queue.Empty:
        return None


def build_client(config: AppConfig) -> FeedClient:
    if config.backend == "rss":
        return RssFeedClient(max_items=config.max_items, timeout_seconds=config.http_timeout_seconds)
    return HackerNewsClient(max_items=config.max_items, timeout_seconds=config.http_timeout_seconds)


def build_services(
    config: AppConfig,
    client: FeedClient,
    surface: Any,
    indicator_factory: Callable[[], MatrixRain],
    poll_key: Callable[[float], str | None],
) -> Services:
    orchestrator = FetchOrchestrator(
        client,
        surface=surface,
        indicator_factory=indicator_factory,
        poll_key=poll_key,
        settings=OrchestratorSettings(deadline_seconds=config.deadline_seconds),
    )

    def summarize_item(item: Item) -> tuple[str, str]:
        return summarize(
            summary_source_text(item),
            api_key=config.claude_api_key,
            model=config.summary_model,
        )

    return Services(orchestrator=orchestrator, summarize=summarize_item, open_url=open_link)


def parse_args(argv: list[str]) -> AppConfig:
    parser = argparse.ArgumentParser(
        description="Hacker News terminal reader with parallel section loading."
    )
    parser.add_argument("--backend", choices=BACKENDS, default="firebase")
    parser.add_argument(
        "--section",
        choices=[section.label.lower() for section in Section],
        default="top",
        help="Section shown first.",
    )
    parser.add_argument("--max-items", type=int, default=DEFAULT_MAX_ITEMS)
    parser.add_argument("--http-timeout-seconds", type=int, default=DEFAULT_HTTP_TIMEOUT_SECONDS)
    parser.add_argument("--deadline-seconds", type=float, default=DEFAULT_DEADLINE_SECONDS)
    parser.add_argument("--summary-model", default=DEFAULT_SUMMARY_MODEL)
    parser.add_argument("--log-file", default=os.getenv("HACKERTUAH_LOG_FILE", ""))
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="WARNING")
    parser.add_argument("--once", action="store_true", help="Load all sections, print one, exit.")

    args = parser.parse_args(argv)

    if not 1 <= args.max_items <= 500:
        raise ValueError("--max-items must be between 1 and 500")
    if args.http_timeout_seconds < 1:
        raise ValueError("--http-timeout-seconds must be >= 1")
    if args.deadline_seconds <= 0:
        raise ValueError("--deadline-seconds must be > 0")

    section = next(s for s in Section if s.label.lower() == args.section)
    return AppConfig(
        backend=args.backend,
        section=section,
        max_items=args.max_items,
        http_timeout_seconds=args.http_timeout_seconds,
        deadline_seconds=args.deadline_seconds,
        summary_model=args.summary_model,
        claude_api_key=os.getenv("CLAUDE_API_KEY", ""),
        log_file=args.log_file,
        log_level=args.log_level,
        once=args.once,
    )


def configure_logging(log_file: str, log_level: str) -> None:
    root = logging.getLogger()
    if not log_file:
        # Anything on stderr would tear the full-screen display.
        root.addHandler(logging.NullHandler())
        return
    handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=2, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level, logging.WARNING))


def run_once(config: AppConfig, console: Console) -> int:
    client = build_client(config)
    state = AppState(cache=SectionCache(), current_section=config.section)
    with Live(console=console, transient=True, refresh_per_second=8) as live:
        services = build_services(
            config,
            client,
            surface=live,
            indicator_factory=lambda: MatrixRain(min(console.size.width - 4, 72), 8),
            poll_key=lambda timeout: None,
        )
        refresh_all(state, services)

    for line in state.status_log:
        console.print(f"[yellow]{line}[/yellow]")
    if config.section not in state.cache:
        console.print(f"[red]No {config.section.label} stories loaded.[/red]")
        return 1
    console.print(
        Panel(
            render_story_table(state, len(state.items), "No stories"),
            title=f"{APP_NAME} | {config.section.label}",
            border_style="green",
        )
    )
    return 0


def run(config: AppConfig, console: Console) -> int:
    if config.once:
        return run_once(config, console)

    client = build_client(config)
    state = AppState(cache=SectionCache(), current_section=config.section)
    set_status(state, "Loading all sections...")

    stop_event = threading.Event()
    command_queue: queue.Queue[str] = queue.Queue()
    input_thread = threading.Thread(
        target=command_input_worker,
        args=(command_queue, stop_event),
        daemon=True,
    )
    input_thread.start()

    with Live(
        build_screen(state, console.size.width, console.size.height),
        console=console,
        refresh_per_second=4,
        screen=True,
        vertical_overflow="crop",
    ) as live:
        services = build_services(
            config,
            client,
            surface=live,
            indicator_factory=lambda: MatrixRain(console.size.width - 4, console.size.height - 5),
            poll_key=lambda timeout: next_key(command_queue, timeout),
        )
        try:
            refresh_all(state, services)
            while True:
                live.update(build_screen(state, console.size.width, console.size.height))
                key = next_key(command_queue, 0.25)
                if key is None:
                    continue
                if handle_key(key, state, services):
                    return 0
        finally:
            stop_event.set()
            input_thread.join(timeout=2)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    console = Console()
    try:
        config = parse_args(argv if argv is not None else sys.argv[1:])
    except ValueError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 2

    configure_logging(config.log_file, config.log_level)
    try:
        return run(config, console)
    except KeyboardInterrupt:
        console.print("\n[bold]Stopped.[/bold]")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
