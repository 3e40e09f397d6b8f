"""Symbology engine — attribute value to visual encoding.

A dataset carries exactly one SymbologyRule.  The rule is a closed set of
variants, each with its own typed parameters, and ``classify`` dispatches on
the variant:

    ThresholdBucketed:  ordered (upper_bound, descriptor) buckets
    ContinuousScaled:   square-root radius scaling with a protection floor
    Categorical:        fixed colours keyed by a yes/no classification

Descriptors are frozen; a rule hands out the same instances it was built with.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Union

from mapviewer.attributes import Flag, classify_flag, to_number


@dataclass(frozen=True)
class SymbolDescriptor:
    """Rendering parameters for one feature.

    Attributes:
        radius: Circle radius in pixels (ignored for polygons).
        fill_color: CSS colour of the fill.
        stroke_color: CSS colour of the outline.
        weight: Outline width in pixels.
        fill_opacity: Fill opacity (0.0 to 1.0).
        opacity: Outline opacity (0.0 to 1.0).
        fill: Whether the shape is filled at all.
    """

    radius: float
    fill_color: str
    stroke_color: str
    weight: float
    fill_opacity: float
    opacity: float = 1.0
    fill: bool = True

    def to_dict(self) -> dict:
        return {
            "radius": self.radius,
            "fillColor": self.fill_color,
            "color": self.stroke_color,
            "weight": self.weight,
            "fillOpacity": self.fill_opacity,
            "opacity": self.opacity,
            "fill": self.fill,
        }


@dataclass(frozen=True)
class ThresholdBucketed:
    """Ordered buckets; the first upper bound the value does not exceed wins.

    The last bucket is open-ended, so the buckets partition (0, inf) without
    gaps.  Missing and non-positive values map to ``minimal``.
    """

    buckets: tuple[tuple[float, SymbolDescriptor], ...]
    minimal: SymbolDescriptor

    def __post_init__(self) -> None:
        if not self.buckets:
            raise ValueError("ThresholdBucketed needs at least one bucket")
        bounds = [upper for upper, _ in self.buckets]
        for lower, upper in zip(bounds, bounds[1:]):
            if not upper > lower:
                raise ValueError(f"Bucket bounds must increase strictly: {bounds}")

    def bucket_index(self, value: Any) -> int | None:
        """Index of the bucket holding ``value``; None for the minimal class."""
        number = to_number(value)
        if number is None or number <= 0:
            return None
        for idx, (upper, _) in enumerate(self.buckets):
            if number <= upper:
                return idx
        return len(self.buckets) - 1


@dataclass(frozen=True)
class ContinuousScaled:
    """Square-root radius scaling.

    Values at or below ``threshold`` are not distinguished and all get
    ``min_radius``; above it the radius is ``sqrt(value) * factor`` clamped
    to ``[min_radius, max_radius]``.
    """

    base: SymbolDescriptor
    threshold: float = 100.0
    factor: float = 0.35
    min_radius: float = 3.0
    max_radius: float = 26.0

    def __post_init__(self) -> None:
        if self.min_radius > self.max_radius:
            raise ValueError("min_radius must not exceed max_radius")

    def radius_for(self, value: Any) -> float:
        number = to_number(value)
        if number is None or number <= self.threshold or number <= 0:
            return self.min_radius
        radius = math.sqrt(number) * self.factor
        return max(self.min_radius, min(self.max_radius, radius))


@dataclass(frozen=True)
class Categorical:
    """Fixed descriptors keyed by a yes/no classification.

    ``neutral`` is used for values that are neither affirmative nor negative;
    when it is None such values are excluded by callers that filter on it.
    """

    affirmative: SymbolDescriptor
    negative: SymbolDescriptor
    neutral: SymbolDescriptor | None = None

    def descriptor_for(self, flag: Flag) -> SymbolDescriptor | None:
        if flag is Flag.AFFIRMATIVE:
            return self.affirmative
        if flag is Flag.NEGATIVE:
            return self.negative
        return self.neutral


SymbologyRule = Union[ThresholdBucketed, ContinuousScaled, Categorical]


def classify(value: Any, rule: SymbologyRule) -> SymbolDescriptor | None:
    """Map a resolved attribute value to a SymbolDescriptor.

    Returns None only for a Categorical rule without a neutral descriptor
    when the value is neither affirmative nor negative.
    """
    if isinstance(rule, ThresholdBucketed):
        idx = rule.bucket_index(value)
        if idx is None:
            return rule.minimal
        return rule.buckets[idx][1]
    if isinstance(rule, ContinuousScaled):
        return replace(rule.base, radius=rule.radius_for(value))
    if isinstance(rule, Categorical):
        return rule.descriptor_for(classify_flag(value))
    raise TypeError(f"Unknown symbology rule: {type(rule).__name__}")


def fixed(descriptor: SymbolDescriptor) -> ThresholdBucketed:
    """A rule that gives every feature the same descriptor."""
    return ThresholdBucketed(buckets=((math.inf, descriptor),), minimal=descriptor)
