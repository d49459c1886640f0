from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CommandKind(Enum):
    OPEN_BROWSER = "open_browser"
    OPEN_COMMENTS = "open_comments"
    SUMMARIZE = "summarize"
    SEARCH = "search"
    SWITCH_TOP = "switch_top"
    SWITCH_ASK = "switch_ask"
    SWITCH_SHOW = "switch_show"
    SWITCH_JOBS = "switch_jobs"
    REFRESH = "refresh"
    REFRESH_ALL = "refresh_all"
    QUIT = "quit"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    name: str
    description: str

    def matches(self, query: str) -> bool:
        lowered = query.lower()
        return lowered in self.name.lower() or lowered in self.description.lower()


COMMANDS: tuple[Command, ...] = (
    Command(CommandKind.OPEN_BROWSER, "Open in Browser", "Open the selected story in your default browser"),
    Command(CommandKind.OPEN_COMMENTS, "Open Comments", "Open the comments for the selected story"),
    Command(CommandKind.SUMMARIZE, "Summarize", "Get an AI summary of the selected story"),
    Command(CommandKind.SEARCH, "Search", "Filter stories by text"),
    Command(CommandKind.SWITCH_TOP, "Switch to Top", "Switch to Top stories section"),
    Command(CommandKind.SWITCH_ASK, "Switch to Ask", "Switch to Ask HN section"),
    Command(CommandKind.SWITCH_SHOW, "Switch to Show", "Switch to Show HN section"),
    Command(CommandKind.SWITCH_JOBS, "Switch to Jobs", "Switch to Jobs section"),
    Command(CommandKind.REFRESH, "Refresh", "Refresh the current section"),
    Command(CommandKind.REFRESH_ALL, "Refresh All", "Refresh all sections"),
    Command(CommandKind.QUIT, "Quit", "Exit the application"),
)


@dataclass
class CommandPalette:
    commands: tuple[Command, ...] = COMMANDS
    query: str = ""
    filtered: list[int] = field(default_factory=list)
    selected_index: int = 0

    def __post_init__(self) -> None:
        self.filter_commands()

    def filter_commands(self) -> None:
        if not self.query:
            self.filtered = list(range(len(self.commands)))
        else:
            self.filtered = [
                index for index, command in enumerate(self.commands) if command.matches(self.query)
            ]
        self.selected_index = 0

    def reset(self) -> None:
        self.query = ""
        self.filter_commands()

    def type_char(self, char: str) -> None:
        self.query += char
        self.filter_commands()

    def backspace(self) -> None:
        self.query = self.query[:-1]
        self.filter_commands()

    def next_command(self) -> None:
        if self.filtered:
            self.selected_index = (self.selected_index + 1) % len(self.filtered)

    def previous_command(self) -> None:
        if self.filtered:
            self.selected_index = (self.selected_index - 1) % len(self.filtered)

    def selected(self) -> Command | None:
        if 0 <= self.selected_index < len(self.filtered):
            return self.commands[self.filtered[self.selected_index]]
        return None

    def visible_commands(self) -> list[Command]:
        return [self.commands[index] for index in self.filtered]
