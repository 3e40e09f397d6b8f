"""Structured attribute cards for feature popups.

The card is markup-free; the rendering client decides how to draw it.
Field names differ per dataset family, so every row lists its candidate keys
in priority order and rows that resolve to nothing are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from mapviewer.attributes import Flag, classify_flag, resolve

TITLE_KEYS = ("NOM_INSTIT", "NOMBRE", "NOMBRE_IE_", "NOM_INSTITU", "NOMBRE_IE")
ID_KEYS = ("AMIE", "CODAMIE", "CODIGO_AMIE")
OFFER_KEYS = ("OFERTA_1", "OFERTA_2", "OFERTA_3", "OFERTA_4")
EDUCATION_LEVEL = "NIVEL EDUCATIVO"

TITLE_PLACEHOLDER = "Registro"
ID_PLACEHOLDER = "—"
ID_LABEL = "AMIE"
EMPTY_TEXT = "Sin atributos"
OFFER_SEPARATOR = ", "

ROW_CANDIDATES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ESTADO", ("ESTADO", "ESTADO_IE", "ESTADO_INS")),
    ("TIPO DE MATERIAL", ("TIPO_MATERIAL", "TIPO_MATERI", "TIPO_MAT", "TE_fin")),
    ("SOSTENIMIENTO", ("SOSTENIMIENTO", "NOM_SOSTEN", "NOM_SOSTENIMIENTO")),
    (EDUCATION_LEVEL, ("NIVEL_EDUCATIVO", "NIVEL_EDU")),
    ("REGIMEN", ("REGIMEN",)),
    ("PROVINCIA", ("DPA_DESPRO", "DPA_DESPROV", "PROVINCIA")),
    ("CANTÓN", ("DPA_DESCAN", "CANTON", "CANTÓN")),
    ("PARROQUIA", ("DPA_DESPAR", "PARROQUIA")),
    ("ZONA", ("DA_ZONA", "ZONA")),
    ("DISTRITO", ("DA_DIST", "NOM_DISTRI", "DISTRITO")),
    ("TOTAL ESTUDIANTES", ("Total estu", "TOTAL_ESTU", "TOTAL_EST", "total_estudiantes")),
    ("TOTAL CASOS", ("Total_Caso", "Total Caso", "TOTAL_CASOS", "total_casos")),
)

BADGE_CANDIDATES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Servicio_E", ("Servicio_E", "Servicio_e", "SERVICIO_E")),
    ("Servicio_A", ("Servicio_A", "Servicio_a", "SERVICIO_A")),
)


@dataclass(frozen=True)
class PopupRow:
    label: str
    value: str


@dataclass(frozen=True)
class BadgeRow:
    label: str
    value: str
    flag: Flag

    @property
    def affirmative(self) -> bool:
        return self.flag is Flag.AFFIRMATIVE


@dataclass(frozen=True)
class PopupCard:
    title: str
    identifier: str
    rows: tuple[PopupRow, ...] = ()
    badges: tuple[BadgeRow, ...] = ()
    identifier_label: str = ID_LABEL
    empty_text: str = field(default=EMPTY_TEXT)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "subtitle": f"{self.identifier_label}: {self.identifier}",
            "rows": [{"label": r.label, "value": r.value} for r in self.rows],
            "badges": [
                {"label": b.label, "value": b.value, "affirmative": b.affirmative}
                for b in self.badges
            ],
            "empty": self.empty_text if self.is_empty else None,
        }


def _education_level(attributes: Mapping[str, Any], canonical: tuple[str, ...]) -> Any:
    value = resolve(attributes, canonical)
    if value is not None:
        return value
    offers = [resolve(attributes, (key,)) for key in OFFER_KEYS]
    offers = [str(o) for o in offers if o is not None]
    return OFFER_SEPARATOR.join(offers) if offers else None


def compose(attributes: Mapping[str, Any] | None) -> PopupCard:
    """Build the attribute card for one feature."""
    attributes = attributes or {}
    title = resolve(attributes, TITLE_KEYS)
    identifier = resolve(attributes, ID_KEYS)

    rows: list[PopupRow] = []
    for label, keys in ROW_CANDIDATES:
        if label == EDUCATION_LEVEL:
            value = _education_level(attributes, keys)
        else:
            value = resolve(attributes, keys)
        if value is None:
            continue
        rows.append(PopupRow(label=label, value=str(value)))

    badges: list[BadgeRow] = []
    for label, keys in BADGE_CANDIDATES:
        value = resolve(attributes, keys)
        if value is None:
            continue
        badges.append(BadgeRow(label=label, value=str(value), flag=classify_flag(value)))

    return PopupCard(
        title=str(title) if title is not None else TITLE_PLACEHOLDER,
        identifier=str(identifier) if identifier is not None else ID_PLACEHOLDER,
        rows=tuple(rows),
        badges=tuple(badges),
    )
