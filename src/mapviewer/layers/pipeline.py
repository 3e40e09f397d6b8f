"""Layer build pipeline.

    SourceResolver -> DataFetcher -> (TopoJSON decode) -> GeometryNormalizer
        -> parse -> {symbology, popup cards, labels} -> Layer

Sub-layers ("derived" specs) are not fetched; they are built from the
parent's cached features, keeping only rows whose flag is affirmative or
negative.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from loguru import logger

from mapviewer.attributes import Flag, classify_flag, combine_flags, resolve
from mapviewer.errors import ConfigurationError, FormatError
from mapviewer.fetch import DataFetcher
from mapviewer.geometry import GeometryNormalizer
from mapviewer.labels import LabelRule, build_labels
from mapviewer.layers.catalog import LayerSpec
from mapviewer.layers.layer import Layer, LayerFeature, LayerKind
from mapviewer.layers.parsers.geojson import parse_features
from mapviewer.layers.parsers.topojson import topology_to_geojson
from mapviewer.popup import compose
from mapviewer.symbology import Categorical, SymbolDescriptor, classify


def symbol_value(properties: Mapping[str, Any], spec: LayerSpec) -> Any:
    """Resolve the attribute value the layer's rule classifies."""
    if isinstance(spec.rule, Categorical):
        flags = [resolve(properties, group) for group in spec.flag_fields]
        if len(flags) > 1:
            return combine_flags(flags)
        return flags[0] if flags else None
    if spec.value_fields:
        return resolve(properties, spec.value_fields)
    return None


def symbol_for(properties: Mapping[str, Any], spec: LayerSpec) -> SymbolDescriptor | None:
    return classify(symbol_value(properties, spec), spec.rule)


class LayerPipeline:
    """Builds Layer objects from LayerSpecs.

    Args:
        resolver: ``key -> URL | None`` source resolution function.
        fetcher: Retrieves JSON documents.
        normalizer: Coordinate sanity check for possibly projected datasets.
        label_rule: Zoom rule attached to polygon labels.
    """

    def __init__(
        self,
        resolver: Callable[[str], str | None],
        fetcher: DataFetcher,
        normalizer: GeometryNormalizer | None = None,
        label_rule: LabelRule | None = None,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.normalizer = normalizer or GeometryNormalizer()
        self.label_rule = label_rule or LabelRule()

    async def build(self, spec: LayerSpec, parent: Layer | None = None) -> Layer:
        if spec.source_format == "derived":
            if parent is None:
                raise FormatError(f"{spec.key} needs its parent layer {spec.parent}")
            return self.derive(spec, parent)

        url = self.resolver(spec.key)
        if not url:
            raise ConfigurationError(spec.key)

        document = await self.fetcher.fetch_json(url)
        return self.from_document(spec, document)

    def from_document(self, spec: LayerSpec, document: dict) -> Layer:
        """Build a layer from an already parsed document."""
        if spec.source_format == "topojson":
            document = topology_to_geojson(document)
        if spec.may_be_projected:
            document = self.normalizer.normalize(document, spec.key)

        features = parse_features(document, spec.kind)
        for feature in features:
            feature.style = symbol_for(feature.properties, spec)
            if spec.popups:
                feature.popup = compose(feature.properties)

        labels = None
        if spec.kind is LayerKind.POLYGON and spec.label_fields:
            labels = build_labels(features, spec.label_fields, self.label_rule)

        logger.info(f"Built layer {spec.key}: {len(features)} features")
        return Layer(
            key=spec.key,
            name=spec.title,
            kind=spec.kind,
            source_format=spec.source_format,
            features=features,
            labels=labels,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    def derive(self, spec: LayerSpec, parent: Layer) -> Layer:
        """Build a flag sub-layer from the parent's features."""
        features: list[LayerFeature] = []
        for feature in parent.features:
            value = symbol_value(feature.properties, spec)
            if classify_flag(value) is Flag.NEITHER:
                continue
            features.append(LayerFeature(
                feature_id=feature.feature_id,
                geometry_type=feature.geometry_type,
                coordinates=feature.coordinates,
                properties=feature.properties,
                style=classify(value, spec.rule),
                popup=feature.popup,
            ))

        logger.info(
            f"Derived layer {spec.key} from {parent.key}: "
            f"{len(features)}/{len(parent.features)} features"
        )
        return Layer(
            key=spec.key,
            name=spec.title,
            kind=spec.kind,
            source_format="derived",
            features=features,
            metadata={"parent": parent.key},
            created_at=datetime.now(timezone.utc).isoformat(),
        )
