"""Layer catalogue — one LayerSpec per layer key.

Specs are defined once at startup and never change.  Each one binds a key to
its UI control, legend, symbology rule and the field-name candidate lists
used to read its attributes.
"""

from __future__ import annotations

from dataclasses import dataclass

from mapviewer.layers.layer import LayerKind
from mapviewer.symbology import (
    Categorical,
    ContinuousScaled,
    SymbolDescriptor,
    SymbologyRule,
    ThresholdBucketed,
    fixed,
)

STUDENT_TOTAL_KEYS = ("Total estu", "TOTAL_ESTU", "TOTAL_EST", "total_estudiantes")
NBI_KEYS = ("NBI", "POR_NBI", "PCT_NBI", "nbi")
PROVINCE_NAME_KEYS = ("DPA_DESPRO", "DPA_DESPROV", "PROVINCIA", "NOMBRE")
CANTON_NAME_KEYS = ("DPA_DESCAN", "CANTON", "CANTÓN", "NOMBRE")
ELECTRICITY_KEYS = ("Servicio_E", "Servicio_e", "SERVICIO_E")
WATER_KEYS = ("Servicio_A", "Servicio_a", "SERVICIO_A")


@dataclass(frozen=True)
class LayerSpec:
    """Static configuration of one layer.

    Attributes:
        key: Layer key, also the cache index.
        title: Display name.
        kind: Polygon or point; polygons always draw beneath points.
        source_format: "geojson", "topojson" or "derived" (sub-layers built
            from the parent's features).
        control_id: Id of the boolean UI control that toggles the layer.
        rule: Symbology rule applied to every feature.
        legend_id: Legend sink shown while the layer is visible.
        value_fields: Candidates for the numeric value fed to the rule.
        flag_fields: Candidate lists for yes/no flags fed to a Categorical
            rule; several lists are combined (all affirmative or negative).
        label_fields: Name candidates for centroid labels (polygons).
        may_be_projected: Run the coordinate sanity check on load.
        parent: Key of the parent layer for dependent sub-layers.
        popups: Compose attribute cards for the features.
    """

    key: str
    title: str
    kind: LayerKind
    source_format: str
    control_id: str
    rule: SymbologyRule
    legend_id: str | None = None
    value_fields: tuple[str, ...] = ()
    flag_fields: tuple[tuple[str, ...], ...] = ()
    label_fields: tuple[str, ...] = ()
    may_be_projected: bool = False
    parent: str | None = None
    popups: bool = True


def _point(radius, fill, stroke, weight=0.7, fill_opacity=0.75) -> SymbolDescriptor:
    return SymbolDescriptor(
        radius=radius, fill_color=fill, stroke_color=stroke,
        weight=weight, fill_opacity=fill_opacity,
    )


def _area(fill, stroke="#2ecc71", weight=1.2, fill_opacity=0.15) -> SymbolDescriptor:
    return SymbolDescriptor(
        radius=0, fill_color=fill, stroke_color=stroke,
        weight=weight, fill_opacity=fill_opacity,
    )


_SERVICE_OK = _point(6, "#00c853", "#000", fill_opacity=0.85)
_SERVICE_MISSING = _point(6, "#d50000", "#000", fill_opacity=0.85)

DEFAULT_SPECS: tuple[LayerSpec, ...] = (
    LayerSpec(
        key="provincias",
        title="Provincias",
        kind=LayerKind.POLYGON,
        source_format="geojson",
        control_id="tgProv",
        rule=fixed(SymbolDescriptor(
            radius=0, fill_color="#000", stroke_color="#000",
            weight=1.5, fill_opacity=0.0, fill=False,
        )),
        label_fields=PROVINCE_NAME_KEYS,
        may_be_projected=True,
        popups=False,
    ),
    LayerSpec(
        key="cantonesNbi",
        title="Cantones con NBI mayor al 50%",
        kind=LayerKind.POLYGON,
        source_format="topojson",
        control_id="tgNbi",
        legend_id="legNbi",
        rule=ThresholdBucketed(
            buckets=(
                (60.0, _area("#c7e9c0", fill_opacity=0.35)),
                (70.0, _area("#74c476", fill_opacity=0.45)),
                (80.0, _area("#31a354", fill_opacity=0.55)),
                (float("inf"), _area("#006d2c", fill_opacity=0.65)),
            ),
            minimal=_area("#2ecc71"),
        ),
        value_fields=NBI_KEYS,
        label_fields=CANTON_NAME_KEYS,
        may_be_projected=True,
    ),
    LayerSpec(
        key="violencia",
        title="Total de casos de violencia",
        kind=LayerKind.POINT,
        source_format="geojson",
        control_id="tgViol",
        legend_id="legViol",
        rule=ContinuousScaled(
            base=_point(3, "#ff9800", "#000"),
            threshold=100.0, factor=0.40, min_radius=3, max_radius=28,
        ),
        value_fields=STUDENT_TOTAL_KEYS,
    ),
    LayerSpec(
        key="otrasNacionalidades",
        title="Estudiantes de otras nacionalidades",
        kind=LayerKind.POINT,
        source_format="geojson",
        control_id="tgOtras",
        legend_id="legOtras",
        rule=ContinuousScaled(
            base=_point(3, "#1f78b4", "#000"),
            threshold=100.0, factor=0.40, min_radius=3, max_radius=28,
        ),
        value_fields=STUDENT_TOTAL_KEYS,
    ),
    LayerSpec(
        key="ieNoAtendidas",
        title="IE fiscales no atendidas",
        kind=LayerKind.POINT,
        source_format="geojson",
        control_id="tgIENo",
        legend_id="legIENo",
        rule=fixed(_point(5, "#000000", "#ffffff", weight=0.8, fill_opacity=0.85)),
    ),
    LayerSpec(
        key="servicios",
        title="Servicios de agua y luz",
        kind=LayerKind.POINT,
        source_format="geojson",
        control_id="tgServ",
        legend_id="legServ",
        rule=Categorical(affirmative=_SERVICE_OK, negative=_SERVICE_MISSING),
        flag_fields=(ELECTRICITY_KEYS, WATER_KEYS),
    ),
    LayerSpec(
        key="serviciosElectricidad",
        title="Servicio eléctrico",
        kind=LayerKind.POINT,
        source_format="derived",
        control_id="tgServE",
        rule=Categorical(affirmative=_SERVICE_OK, negative=_SERVICE_MISSING),
        flag_fields=(ELECTRICITY_KEYS,),
        parent="servicios",
    ),
    LayerSpec(
        key="serviciosAgua",
        title="Servicio de agua",
        kind=LayerKind.POINT,
        source_format="derived",
        control_id="tgServA",
        rule=Categorical(affirmative=_SERVICE_OK, negative=_SERVICE_MISSING),
        flag_fields=(WATER_KEYS,),
        parent="servicios",
    ),
)
