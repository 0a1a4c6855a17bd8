"""
Field catalog for the expediente form.

One entry per expediente column the form deals with. `offered` marks the
columns listed to the client when they are still empty; `accepted` marks the
columns the submit endpoint will write. The two sets are not identical.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

BASE = "base"
AYUDA = "ayuda"
BIS = "bis"

TEXT = "text"
NUMBER = "number"
BOOLEAN = "boolean"

AFFIRMATIVE = ("si", "sí", "true", "1", "on", "yes")
NEGATIVE = ("no", "false", "0", "off")

# Submission key for the "second aid exists" flag
BIS_FLAG = "ayuda_bisrehab"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    type: str = "text"        # html input type: text, number, date, email, tel, textarea
    group: str = BASE
    offered: bool = True
    accepted: bool = True
    coercion: str = TEXT

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "label": self.label, "type": self.type}


FIELDS: List[FieldSpec] = [
    # A - entidad
    FieldSpec("nif_entidad", "NIF de la entidad"),
    FieldSpec("comunidad_autonoma", "Comunidad autónoma"),
    FieldSpec("provincia_", "Provincia"),
    FieldSpec("calle_actuacion", "Dirección de la actuación"),

    # C - representante
    FieldSpec("nombre_representante", "Nombre del firmante del contrato"),
    FieldSpec("nif_representante", "NIF del firmante del contrato"),
    FieldSpec("correo_representante", "Correo del representante", type="email"),
    FieldSpec("telefono_representante", "Teléfono del representante", type="tel"),
    FieldSpec("presidente_comunidad", "Presidente de la comunidad", offered=False),
    FieldSpec("fecha_inicio", "Fecha de inicio", type="date", offered=False),
    FieldSpec("fecha_fin", "Fecha de fin", type="date", offered=False),

    # D - junta
    FieldSpec("acta_junta", "Acta de la junta (nombre del archivo)", type="textarea"),

    # E - ayuda rehabilitación
    FieldSpec("ayuda_rehab", "Denominacion del programa de ayuda (rehabilitación)", group=AYUDA),
    FieldSpec("ent_ayuda", "Entidad u organismo gestor", group=AYUDA),
    FieldSpec("año_ayuda", "Año de la ayuda", group=AYUDA),
    FieldSpec("regul_ayuda", "Disposicion reguladora", group=AYUDA),
    FieldSpec("num_expayuda", "Número de expediente", group=AYUDA, accepted=False),
    FieldSpec("estado_ayuda", "Estado de la concesion", group=AYUDA),
    FieldSpec("fecha_solayuda", "Fecha de solicitud", type="date", group=AYUDA, accepted=False),
    FieldSpec("fecha_resolucion", "Fecha de resolución", type="date", group=AYUDA),
    FieldSpec("resol_ayuda", "Resolución de la ayuda", group=AYUDA, offered=False),
    FieldSpec("cuantia_ayuda", "Cuantía concedida (€)", type="number", group=AYUDA, coercion=NUMBER),

    # E - segunda ayuda (BIS)
    FieldSpec(BIS_FLAG, "Denominacion del programa de ayuda (BIS) (rehabilitación)", group=BIS, coercion=BOOLEAN),
    FieldSpec("ent_bisayudabis", "Organismo concedente (BIS)", group=BIS),
    FieldSpec("ano_bisayuda", "Año (BIS)", type="number", group=BIS, coercion=NUMBER),
    FieldSpec("regul_bisayuda", "Convocatoria / base reguladora (BIS)", group=BIS),
    FieldSpec("num_expbisayuda", "Número de expediente (BIS)", group=BIS, accepted=False),
    FieldSpec("num_bisexp", "Número de expediente (BIS)", group=BIS, offered=False),
    FieldSpec("estado_bisayuda", "Estado (BIS)", group=BIS),
    FieldSpec("fecha_solbisayuda", "Fecha de solicitud (BIS)", type="date", group=BIS, accepted=False),
    FieldSpec("fecha_bisresolucion", "Fecha de resolución (BIS)", type="date", group=BIS),
    FieldSpec("resol_bisayuda", "Resolución (BIS)", group=BIS, offered=False),
    FieldSpec("cuantia_bisayuda", "Cuantía concedida (BIS) €", type="number", group=BIS, coercion=NUMBER),
]

FIELDS_BY_NAME: Dict[str, FieldSpec] = {f.name: f for f in FIELDS}

OFFERED_FIELDS: List[FieldSpec] = [f for f in FIELDS if f.offered]
ACCEPTED_FIELDS = frozenset(f.name for f in FIELDS if f.accepted)


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def to_number(value: Any) -> Optional[float]:
    """
    Parse a locale formatted number ("1.234,56" -> 1234.56).

    Thousands separator dots are removed and the first comma becomes the
    decimal point. Returns None for anything that does not give a finite
    number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s or "_" in s:
        return None
    normalized = s.replace(".", "").replace(",", ".", 1)
    try:
        number = float(normalized)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip().lower()
    if s in AFFIRMATIVE:
        return True
    if s in NEGATIVE:
        return False
    return None


def coerce(spec: FieldSpec, value: Any) -> Optional[Any]:
    """Coerce a raw submitted value for `spec`; None means drop it."""
    if isinstance(value, str):
        value = value.strip()
    if is_empty(value):
        return None

    if spec.coercion == NUMBER:
        return to_number(value)
    if spec.coercion == BOOLEAN:
        return to_bool(value)
    if isinstance(value, (str, int, float)):
        return value
    return None


def clean_submission(data: Dict[str, Any]) -> Dict[str, Any]:
    """Filter submitted data to accepted fields and coerce their values."""
    cleaned = {}
    for name, raw in data.items():
        if name not in ACCEPTED_FIELDS:
            continue
        value = coerce(FIELDS_BY_NAME[name], raw)
        if value is None:
            continue
        cleaned[name] = value
    return cleaned
