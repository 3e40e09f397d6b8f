"""ToggleController — lazy build, cache once, idempotent show/hide.

State machine per layer key:

    unbuilt -> loading -> built-visible | built-hidden | error
    built-hidden <-> built-visible
    error -> unbuilt            (after rollback)

The controller is the only writer of the registry slots, the render surface
and the panel.  Builds run on the asyncio loop; the fetch inside a build is
the only suspension point, and every slot write happens synchronously on
either side of it.

A layer switched off while its build is in flight is cached hidden when the
build completes, never attached.  Invalidating a layer during a build
discards the stale result.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from mapviewer.layers.catalog import LayerSpec
from mapviewer.layers.layer import Layer
from mapviewer.layers.registry import LayerRegistry, LayerSlot, ToggleState
from mapviewer.layers.surface import MapPanel, RenderSurface

LOADING_MESSAGE = "Cargando capa..."


class LayerBuilder(Protocol):
    async def build(self, spec: LayerSpec, parent: Layer | None = None) -> Layer: ...


class ToggleController:
    """Owns the layer cache and applies visibility changes.

    Args:
        registry: Layer slots, one per key.
        builder: Build pipeline producing a Layer for a spec.
        surface: Rendering surface the layers are attached to.
        panel: Status sink, control states and legend sinks.
    """

    def __init__(
        self,
        registry: LayerRegistry,
        builder: LayerBuilder,
        surface: RenderSurface | None = None,
        panel: MapPanel | None = None,
    ) -> None:
        self.registry = registry
        self.builder = builder
        self.surface = surface or RenderSurface()
        self.panel = panel or MapPanel()
        for slot in registry.slots():
            self.panel.controls.setdefault(slot.spec.control_id, False)
            self.panel.set_legend(slot.spec.legend_id, False)

    # ------------------------------------------------------------------
    # UI entry point
    # ------------------------------------------------------------------

    async def on_change(self, control_id: str, checked: bool) -> ToggleState:
        """Handle a change notification from a layer control.

        Raises:
            KeyError: If no layer is bound to ``control_id``.
        """
        key = self.registry.key_for_control(control_id)
        if key is None:
            raise KeyError(f"No layer bound to control: {control_id}")
        if not checked:
            return self.deactivate(key)
        children = self.registry.children(key)
        if children:
            return await self.activate_group(key, children)
        return await self.activate(key)

    async def activate_checked(self) -> None:
        """Activate every layer whose control is already checked (startup)."""
        for key in self.registry.keys():
            spec = self.registry.spec(key)
            if spec.parent is not None or not self.panel.is_checked(spec.control_id):
                continue
            children = self.registry.children(key)
            if children:
                await self.activate_group(key, children)
            else:
                await self.activate(key)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def activate(self, key: str) -> ToggleState:
        """Show a layer, building it on first use."""
        slot = self.registry.slot(key)
        spec = slot.spec
        self.panel.set_control(spec.control_id, True)

        if spec.parent is not None and not self.registry.slot(spec.parent).is_visible:
            # stays checked; shown once the parent is active
            logger.debug(f"{key}: parent {spec.parent} inactive, deferring")
            return slot.state

        if slot.is_built:
            logger.debug(f"{key}: cache hit")
            self._show(slot)
            return slot.state

        if slot.state is ToggleState.LOADING:
            slot.want_visible = True
            return slot.state

        await self._build(slot)
        return slot.state

    def deactivate(self, key: str) -> ToggleState:
        """Hide a layer; children of a group are hidden with it.

        Never-built layers are left alone.  Children keep their control
        state so they come back when the parent is reactivated.
        """
        slot = self.registry.slot(key)
        self.panel.set_control(slot.spec.control_id, False)

        if slot.state is ToggleState.LOADING:
            slot.want_visible = False
            return slot.state

        for child_key in self.registry.children(key):
            child = self.registry.slot(child_key)
            if child.state is ToggleState.LOADING:
                child.want_visible = False
            elif child.is_visible:
                self._hide(child)

        if slot.is_visible:
            self._hide(slot)
        return slot.state

    async def activate_group(self, parent_key: str, child_keys: list[str]) -> ToggleState:
        """Activate a parent, then every child whose control is checked."""
        state = await self.activate(parent_key)
        if not self.registry.slot(parent_key).is_visible:
            return state
        for child_key in child_keys:
            child = self.registry.slot(child_key)
            if self.panel.is_checked(child.spec.control_id):
                await self.activate(child_key)
        return state

    def invalidate(self, key: str) -> None:
        """Drop a cached layer (and its sub-layers) so the next activation rebuilds it.

        A layer invalidated while loading stays ``loading`` until the stale
        build returns, so a second build for the same key cannot start.
        The stale result is then discarded.
        """
        for child_key in self.registry.children(key):
            self.invalidate(child_key)
        slot = self.registry.slot(key)
        slot.generation += 1
        self.surface.detach(key)
        self.panel.set_legend(slot.spec.legend_id, False)
        self.panel.set_control(slot.spec.control_id, False)
        slot.layer = None
        slot.want_visible = False
        if slot.state is ToggleState.LOADING:
            self.panel.set_status("")
            logger.info(f"Invalidated layer {key} while loading")
            return
        slot.state = ToggleState.UNBUILT
        logger.info(f"Invalidated layer {key}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _build(self, slot: LayerSlot) -> None:
        spec = slot.spec
        generation = slot.generation
        slot.state = ToggleState.LOADING
        slot.want_visible = True
        slot.last_error = None
        slot.builds += 1
        self.panel.set_status(LOADING_MESSAGE)

        parent = self.registry.slot(spec.parent).layer if spec.parent else None
        try:
            layer = await self.builder.build(spec, parent)
        except Exception as e:
            if slot.generation != generation:
                await self._settle_invalidated(slot)
                return
            self._fail(slot, e)
            return

        if slot.generation != generation:
            logger.debug(f"{spec.key}: discarding build invalidated while loading")
            await self._settle_invalidated(slot)
            return

        slot.layer = layer
        slot.state = ToggleState.BUILT_HIDDEN
        self.panel.set_status("")
        if slot.want_visible and self._parent_visible(spec):
            self._show(slot)
        else:
            logger.info(f"{spec.key}: switched off while loading, cached hidden")

    async def _settle_invalidated(self, slot: LayerSlot) -> None:
        """Reset a slot whose build was invalidated; rebuild if re-requested meanwhile."""
        slot.state = ToggleState.UNBUILT
        if slot.want_visible and self._parent_visible(slot.spec):
            await self._build(slot)

    def _parent_visible(self, spec: LayerSpec) -> bool:
        return spec.parent is None or self.registry.slot(spec.parent).is_visible

    def _show(self, slot: LayerSlot) -> None:
        self.surface.attach(slot.layer)
        slot.state = ToggleState.BUILT_VISIBLE
        slot.want_visible = True
        self.panel.set_legend(slot.spec.legend_id, True)
        logger.info(f"Layer {slot.spec.key} visible")

    def _hide(self, slot: LayerSlot) -> None:
        self.surface.detach(slot.spec.key)
        slot.state = ToggleState.BUILT_HIDDEN
        slot.want_visible = False
        self.panel.set_legend(slot.spec.legend_id, False)
        logger.info(f"Layer {slot.spec.key} hidden")

    def _fail(self, slot: LayerSlot, error: Exception) -> None:
        slot.state = ToggleState.ERROR
        slot.last_error = str(error) or type(error).__name__
        logger.warning(f"Layer {slot.spec.key} failed to build: {slot.last_error}")
        self._rollback(slot)

    def _rollback(self, slot: LayerSlot) -> None:
        """Undo a failed build: nothing attached, control off, message shown."""
        key = slot.spec.key
        for child_key in self.registry.children(key):
            child = self.registry.slot(child_key)
            self.surface.detach(child_key)
            self.panel.set_legend(child.spec.legend_id, False)
            child.generation += 1
            child.layer = None
            child.want_visible = False
            child.state = ToggleState.UNBUILT
        self.surface.detach(key)
        self.panel.set_control(slot.spec.control_id, False)
        self.panel.set_legend(slot.spec.legend_id, False)
        self.panel.set_status(slot.last_error)
        slot.layer = None
        slot.want_visible = False
        slot.state = ToggleState.UNBUILT

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> list[dict]:
        """State of every layer, for the HTTP surface."""
        result = []
        for slot in self.registry.slots():
            spec = slot.spec
            result.append({
                "key": spec.key,
                "title": spec.title,
                "kind": spec.kind.value,
                "control": spec.control_id,
                "checked": self.panel.is_checked(spec.control_id),
                "state": slot.state.value,
                "parent": spec.parent,
                "legend": spec.legend_id,
                "error": slot.last_error,
                "features": len(slot.layer.features) if slot.layer else 0,
            })
        return result
