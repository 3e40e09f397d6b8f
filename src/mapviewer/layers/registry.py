"""LayerRegistry — one cache slot per layer key.

The registry is plain state.  Only the ToggleController mutates slots; other
components read them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from mapviewer.layers.catalog import LayerSpec
from mapviewer.layers.layer import Layer


class ToggleState(enum.Enum):
    UNBUILT = "unbuilt"
    LOADING = "loading"
    BUILT_HIDDEN = "built-hidden"
    BUILT_VISIBLE = "built-visible"
    ERROR = "error"


@dataclass
class LayerSlot:
    """Cache slot for one layer key.

    Attributes:
        spec: Static configuration of the layer.
        state: Current ToggleState.
        layer: The built layer, once built.
        last_error: Message of the most recent failed build.
        want_visible: Visibility requested while a build is in flight.
        generation: Bumped on invalidation so stale builds are discarded.
        builds: Number of builds started for this slot.
    """

    spec: LayerSpec
    state: ToggleState = ToggleState.UNBUILT
    layer: Layer | None = None
    last_error: str | None = None
    want_visible: bool = False
    generation: int = 0
    builds: int = 0

    @property
    def is_built(self) -> bool:
        return self.state in (ToggleState.BUILT_HIDDEN, ToggleState.BUILT_VISIBLE)

    @property
    def is_visible(self) -> bool:
        return self.state is ToggleState.BUILT_VISIBLE


class LayerRegistry:
    """Registry of layer slots keyed by layer key."""

    def __init__(self, specs: Iterable[LayerSpec]) -> None:
        self._slots: dict[str, LayerSlot] = {}
        for spec in specs:
            if spec.key in self._slots:
                raise ValueError(f"Duplicate layer key: {spec.key}")
            self._slots[spec.key] = LayerSlot(spec=spec)
        for slot in self._slots.values():
            parent = slot.spec.parent
            if parent is not None and parent not in self._slots:
                raise ValueError(f"Layer {slot.spec.key} has unknown parent {parent}")

    def __contains__(self, key: str) -> bool:
        return key in self._slots

    def slot(self, key: str) -> LayerSlot:
        """Get a slot by key.

        Raises:
            KeyError: If the key is not registered.
        """
        slot = self._slots.get(key)
        if slot is None:
            raise KeyError(f"Layer not found: {key}")
        return slot

    def spec(self, key: str) -> LayerSpec:
        return self.slot(key).spec

    def state(self, key: str) -> ToggleState:
        return self.slot(key).state

    def keys(self) -> list[str]:
        return list(self._slots)

    def slots(self) -> list[LayerSlot]:
        return list(self._slots.values())

    def children(self, key: str) -> list[str]:
        return [k for k, s in self._slots.items() if s.spec.parent == key]

    def key_for_control(self, control_id: str) -> str | None:
        for key, slot in self._slots.items():
            if slot.spec.control_id == control_id:
                return key
        return None
