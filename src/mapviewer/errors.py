"""Error taxonomy for the layer build pipeline.

Every failure raised while building a layer derives from MapViewerError so the
ToggleController can catch it at a single boundary.
"""

from __future__ import annotations


class MapViewerError(Exception):
    """Base class for layer build failures."""


class TransportError(MapViewerError):
    """Non-success response or network failure while fetching a dataset."""

    def __init__(self, url: str, status: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status} while loading {url}"
        else:
            message = f"Network error while loading {url}: {reason}"
        super().__init__(message)


class FormatError(MapViewerError):
    """Document does not have the structure the pipeline needs."""


class ConfigurationError(MapViewerError):
    """No source URL could be resolved for a layer key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No URL configured for {key}")
