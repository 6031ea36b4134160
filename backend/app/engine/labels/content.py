"""Label content model and the default indoor label provider.

A provider is asked for one variant at a time. It returns the lines to
show, an optional icon, and the name of the variant to try next when this
one does not fit. Returning ``None`` or empty content means "no label".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from app.engine.features import Feature
from app.engine.view import ViewState

STAIRS_ICON = "stairs"
ELEVATOR_ICON = "elevator"

# Icons are only drawn when zoomed in past this resolution (map units per px).
ICON_MAX_RESOLUTION = 0.4

MALE_GLYPH = "\U0001F6B9"
FEMALE_GLYPH = "\U0001F6BA"
UNISEX_GLYPH = "\U0001F6BB"


@dataclass
class LabelLine:
    text: str
    bold: bool = False


@dataclass
class LabelContent:
    lines: list[LabelLine] = field(default_factory=list)
    icon: str | None = None
    fallback_variant: str | None = None
    # Skip containment and overflow checks (icons may spill out of tiny rooms).
    allow_extending_geometry: bool = False

    @property
    def is_empty(self) -> bool:
        return self.icon is None and not any(line.text for line in self.lines)

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


LabelProvider = Callable[[Feature, str, ViewState], "LabelContent | None"]


def _gender_glyph(feature: Feature) -> str | None:
    male = feature.get("male") == "yes"
    female = feature.get("female") == "yes"
    if male and not female:
        return MALE_GLYPH
    if female and not male:
        return FEMALE_GLYPH
    if feature.get("unisex") == "yes" or (male and female):
        return UNISEX_GLYPH
    return None


def _icon_for(feature: Feature) -> str | None:
    if feature.get("room") == "stairs" or feature.get("stairs") == "yes":
        return STAIRS_ICON
    if feature.get("room") == "elevator" or feature.get("highway") == "elevator":
        return ELEVATOR_ICON
    return None


def default_label_provider(
    feature: Feature,
    variant: str,
    view: ViewState,
) -> LabelContent | None:
    """Name and ref, falling back to ref only, or to an icon for stairs/lifts.

    Variants: ``default`` (bold name + ref), ``ref-only`` and ``icon-only``.
    """
    content = LabelContent()
    name = feature.get("name")
    ref = feature.get("ref")

    if variant == "default" and name:
        content.lines.append(LabelLine(name, bold=True))
    if variant in ("default", "ref-only") and ref:
        content.lines.append(LabelLine(ref))

    if content.lines:
        glyph = _gender_glyph(feature)
        if glyph is not None:
            first = content.lines[0]
            first.text = f"{glyph} {first.text}"

    icon = _icon_for(feature)
    if icon is not None and view.resolution < ICON_MAX_RESOLUTION:
        content.icon = icon
        if variant == "icon-only":
            content.allow_extending_geometry = True
        else:
            content.fallback_variant = "icon-only"
        return content

    if variant == "default" and ref:
        content.fallback_variant = "ref-only"
    return content


def label_candidate(feature: Feature) -> bool:
    """Features the label layer considers: no floor outlines, no generated shapes."""
    if feature.get("indoor") == "level":
        return False
    if feature.get("generated-wall") == "yes" or feature.get("generated-walkway") == "yes":
        return False
    return not feature.geometry.is_empty
