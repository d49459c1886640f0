from __future__ import annotations

import random
from typing import Any

from rich.align import Align
from rich.console import Group
from rich.panel import Panel
from rich.text import Text

MATRIX_GLYPHS = "ｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄﾅﾆﾇﾈﾉﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓﾔﾕﾖﾗﾘﾙﾚﾛﾜﾝ1234567890"
TRAIL_LENGTH = 20
BLINK_SECONDS = 0.5
FALL_RATE = 10.0
LOADING_LABEL = "Loading..."


class MatrixRain:
    def __init__(self, width: int, height: int, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.width = max(1, width)
        self.height = max(3, height)
        self.glyphs = [
            [self.rng.choice(MATRIX_GLYPHS) for _ in range(TRAIL_LENGTH)] for _ in range(self.width)
        ]
        self.speeds = [self.rng.uniform(0.1, 1.0) for _ in range(self.width)]
        self.positions = [self.rng.uniform(-float(TRAIL_LENGTH), 0.0) for _ in range(self.width)]
        self.blink_on = True
        self.blink_elapsed = 0.0

    def advance(self, elapsed: float) -> None:
        elapsed = max(0.0, elapsed)
        for column, speed in enumerate(self.speeds):
            position = self.positions[column] + speed * elapsed * FALL_RATE
            if position > TRAIL_LENGTH:
                position = -float(TRAIL_LENGTH)
            self.positions[column] = position

        self.blink_elapsed += elapsed
        if self.blink_elapsed > BLINK_SECONDS:
            self.blink_on = not self.blink_on
            self.blink_elapsed = 0.0

    def rain_rows(self) -> list[str]:
        rows: list[str] = []
        for y in range(self.height - 2):
            cells: list[str] = []
            for column in range(self.width):
                offset = y - int(self.positions[column])
                if offset <= 0:
                    cells.append(self.glyphs[column][offset % TRAIL_LENGTH])
                else:
                    cells.append(" ")
            rows.append("".join(cells))
        return rows

    def build(self) -> Panel:
        rain = Text("\n".join(self.rain_rows()), style="green", no_wrap=True, overflow="crop")
        label = LOADING_LABEL if self.blink_on else " " * len(LOADING_LABEL)
        banner = Panel(Text(label, style="bold green", justify="center"), border_style="green", width=16)
        return Panel(
            Group(Align.center(banner), rain),
            border_style="green",
            title="Hackertuah News",
        )

    def render(self, surface: Any) -> None:
        surface.update(self.build(), refresh=True)
