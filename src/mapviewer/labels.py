"""Centroid labels for polygon layers.

Labels are built once per layer build and are immutable.  Whether they are
shown, and at what size, is decided by ``LabelRule.evaluate(zoom)`` on every
zoom change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from mapviewer.attributes import resolve
from mapviewer.geometry import walk_vertices


@dataclass(frozen=True)
class LabelStyle:
    visible: bool
    font_size: float


@dataclass(frozen=True)
class LabelRule:
    """Zoom-dependent label visibility and font size.

    Labels are hidden below ``min_zoom``.  From there the font grows by
    ``font_step`` per zoom level, clamped to ``[min_font, max_font]``.
    """

    min_zoom: float = 8.0
    min_font: float = 10.0
    max_font: float = 16.0
    font_step: float = 1.5

    def font_size(self, zoom: float) -> float:
        size = self.min_font + (zoom - self.min_zoom) * self.font_step
        return max(self.min_font, min(self.max_font, size))

    def evaluate(self, zoom: float) -> LabelStyle:
        return LabelStyle(visible=zoom >= self.min_zoom, font_size=self.font_size(zoom))


@dataclass(frozen=True)
class LabelEntry:
    """A wrapped label anchored at a polygon's bounding-box centre.

    Attributes:
        text: Label text, lines separated by "\\n".
        anchor: (lng, lat) anchor point.
        min_zoom: Zoom level below which the label is hidden.
        rule: The rule that computes visibility and size for a zoom.
    """

    text: str
    anchor: tuple[float, float]
    min_zoom: float
    rule: LabelRule

    def font_size(self, zoom: float) -> float:
        return self.rule.font_size(zoom)


@dataclass(frozen=True)
class LabelSet:
    labels: tuple[LabelEntry, ...]
    rule: LabelRule

    def at_zoom(self, zoom: float) -> list[dict]:
        """Render-ready label dicts for ``zoom``; empty when hidden."""
        style = self.rule.evaluate(zoom)
        if not style.visible:
            return []
        return [
            {"text": label.text, "anchor": list(label.anchor), "fontSize": style.font_size}
            for label in self.labels
        ]


def wrap_label(name: str) -> str:
    """Wrap a name into at most three lines.

    1 word stays on one line, 2 or 3 words go one per line, longer names
    are split into three contiguous groups of ceil(n/3),
    ceil(2n/3) - ceil(n/3) and the remaining words.
    """
    words = name.split()
    n = len(words)
    if n <= 1:
        return name.strip()
    if n <= 3:
        return "\n".join(words)
    first = math.ceil(n / 3)
    second = math.ceil(2 * n / 3)
    groups = (words[:first], words[first:second], words[second:])
    return "\n".join(" ".join(group) for group in groups if group)


def bbox_center(coordinates) -> tuple[float, float] | None:
    """Centre of the bounding box of nested coordinates, or None."""
    xs: list[float] = []
    ys: list[float] = []
    for vertex in walk_vertices(coordinates):
        x, y = float(vertex[0]), float(vertex[1])
        if math.isfinite(x) and math.isfinite(y):
            xs.append(x)
            ys.append(y)
    if not xs:
        return None
    return ((min(xs) + max(xs)) / 2, (min(ys) + max(ys)) / 2)


def build_labels(
    features: Iterable, name_candidates: Sequence[str], rule: LabelRule,
) -> LabelSet:
    """Build centroid labels for polygon features.

    Features without a resolvable name or without a usable bounding box
    are skipped.
    """
    labels: list[LabelEntry] = []
    for feature in features:
        name = resolve(feature.properties, name_candidates)
        if name is None:
            continue
        try:
            anchor = bbox_center(feature.coordinates)
        except (TypeError, ValueError, ArithmeticError):
            anchor = None
        if anchor is None:
            continue
        labels.append(LabelEntry(
            text=wrap_label(str(name)),
            anchor=anchor,
            min_zoom=rule.min_zoom,
            rule=rule,
        ))
    return LabelSet(labels=tuple(labels), rule=rule)
