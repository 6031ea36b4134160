"""Text measurement: turns label content into rectangles inside a label box.

The label box has a fixed width; lines are greedily word-wrapped and centred.
Rectangles are ``(left, top, right, bottom)`` in box pixels, y pointing down.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from PIL import ImageFont

from app.engine.labels.content import LabelContent

Rect = tuple[float, float, float, float]


@dataclass
class MeasuredLabel:
    rects: list[Rect] = field(default_factory=list)
    # Width the content needs; larger than the box when a word cannot wrap.
    scroll_width: float = 0.0

    @property
    def width(self) -> float:
        if not self.rects:
            return 0.0
        return max(r[2] for r in self.rects) - min(r[0] for r in self.rects)

    @property
    def height(self) -> float:
        if not self.rects:
            return 0.0
        return max(r[3] for r in self.rects) - min(r[1] for r in self.rects)


class TextMeasurer(Protocol):
    def measure(self, content: LabelContent, max_width: float) -> MeasuredLabel: ...


class PillowTextMeasurer:
    """Measures with Pillow fonts; the bundled default font unless paths are given."""

    def __init__(
        self,
        font_size: int = 12,
        line_spacing: float = 1.2,
        icon_size: float = 16.0,
        icon_gap: float = 4.0,
        font_path: str | None = None,
        bold_font_path: str | None = None,
    ) -> None:
        self.font_size = font_size
        self.line_height = font_size * line_spacing
        self.icon_size = icon_size
        self.icon_gap = icon_gap
        self.font = self._load(font_path, font_size)
        self.bold_font = self._load(bold_font_path or font_path, font_size)

    @staticmethod
    def _load(path: str | None, size: int):
        if path:
            return ImageFont.truetype(path, size)
        return ImageFont.load_default(size=size)

    def text_width(self, text: str, bold: bool = False) -> float:
        font = self.bold_font if bold else self.font
        return float(font.getlength(text))

    def _wrap(
        self,
        text: str,
        bold: bool,
        max_width: float,
        lead: float,
    ) -> list[float]:
        """Widths of the wrapped rows of one line. ``lead`` is reserved on row one."""
        rows: list[float] = []
        current: list[str] = []
        for word in text.split():
            offset = lead if not rows else 0.0
            candidate = " ".join(current + [word])
            if current and offset + self.text_width(candidate, bold) > max_width:
                rows.append(offset + self.text_width(" ".join(current), bold))
                current = [word]
            else:
                current.append(word)
        if current:
            offset = lead if not rows else 0.0
            rows.append(offset + self.text_width(" ".join(current), bold))
        return rows

    def measure(self, content: LabelContent, max_width: float) -> MeasuredLabel:
        result = MeasuredLabel(scroll_width=max_width)
        icon_pending = content.icon is not None
        y = 0.0

        for line in content.lines:
            lead = self.icon_size + self.icon_gap if icon_pending else 0.0
            rows = self._wrap(line.text, line.bold, max_width, lead)
            for i, width in enumerate(rows):
                height = self.line_height
                if i == 0 and icon_pending:
                    height = max(height, self.icon_size)
                left = (max_width - width) / 2
                result.rects.append((left, y, left + width, y + height))
                result.scroll_width = max(result.scroll_width, width)
                y += height
            if rows:
                icon_pending = False

        if icon_pending:
            left = (max_width - self.icon_size) / 2
            result.rects.append((left, y, left + self.icon_size, y + self.icon_size))
            result.scroll_width = max(result.scroll_width, self.icon_size)

        return result
