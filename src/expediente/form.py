"""
Form state for the pending fields page.

Two switches drive what the user sees: "is there an aid" and "is there a
second aid". The second one only counts while the first is on.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from expediente.domain import fields


@dataclass(frozen=True)
class ToggleState:
    has_ayuda: bool = False
    has_bis: bool = False

    def __post_init__(self):
        if self.has_bis and not self.has_ayuda:
            object.__setattr__(self, "has_bis", False)

    @property
    def bis_flag(self) -> bool:
        return self.has_ayuda and self.has_bis

    def toggle_ayuda(self) -> "ToggleState":
        # switching the aid off also switches the second aid off
        return ToggleState(has_ayuda=not self.has_ayuda, has_bis=self.has_bis and not self.has_ayuda)

    def toggle_bis(self) -> "ToggleState":
        if not self.has_ayuda:
            return self
        return ToggleState(has_ayuda=True, has_bis=not self.has_bis)


def group_of(name: str) -> str:
    spec = fields.FIELDS_BY_NAME.get(name)
    return spec.group if spec else fields.BASE


def is_visible(state: ToggleState, name: str) -> bool:
    group = group_of(name)
    if group == fields.BIS:
        return state.has_ayuda and state.has_bis
    if group == fields.AYUDA:
        return state.has_ayuda
    return True


def visible_fields(state: ToggleState, field_list: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Subset of `field_list` ({name, label, type} entries) shown for `state`."""
    return [f for f in field_list if is_visible(state, f["name"])]


def build_submission(
    state: ToggleState,
    field_list: Iterable[Mapping[str, Any]],
    values: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Build the `data` payload sent on submit.

    The second aid flag is always sent. Of the typed values only those of
    visible fields are sent, trimmed, and blanks are left out.
    """
    data: Dict[str, Any] = {fields.BIS_FLAG: state.bis_flag}

    for f in visible_fields(state, field_list):
        value = values.get(f["name"])
        if fields.is_empty(value):
            continue
        data[f["name"]] = value.strip() if isinstance(value, str) else value

    return data


def help_text(field_type: str) -> str:
    if field_type == "date":
        return "Formato: AAAA-MM-DD"
    if field_type == "number":
        return "Puedes usar decimales."
    return ""
