"""
Custom field answers.

Answers are persisted as strings. ``FieldValue`` records the shape of the
answer when it is captured (free text, list of options, or a toggle) so it
can be decoded without guessing; rows written without a kind are decoded
with the legacy heuristic: JSON array, then boolean, then the raw string.
"""
import enum
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

DEFAULT_TOGGLE_LABELS = ["Yes", "No"]
EMPTY_DISPLAY = "-"


class ValueKind(str, enum.Enum):
    text = "text"
    string_list = "string_list"
    bool = "bool"


@dataclass(frozen=True)
class FieldValue:
    kind: ValueKind
    raw: str

    @classmethod
    def capture(cls, value: Any) -> "FieldValue":
        """Encode a submitted answer, remembering its shape."""
        if isinstance(value, bool):
            return cls(ValueKind.bool, "true" if value else "false")
        if isinstance(value, (list, tuple)):
            return cls(ValueKind.string_list, json.dumps(list(value)))
        if isinstance(value, dict):
            return cls(ValueKind.text, json.dumps(value))
        if value is None:
            return cls(ValueKind.text, "")
        return cls(ValueKind.text, str(value))

    @classmethod
    def stored(cls, raw: str, kind: Optional[str]) -> "FieldValue":
        """Rebuild a value read from the database, inferring the kind for legacy rows."""
        if kind:
            return cls(ValueKind(kind), raw)
        return cls(infer_kind(raw), raw)

    def decode(self) -> Any:
        if self.kind is ValueKind.string_list:
            try:
                parsed = json.loads(self.raw)
            except ValueError:
                return [self.raw]
            return parsed if isinstance(parsed, list) else [parsed]
        if self.kind is ValueKind.bool:
            return self.raw.strip().lower() == "true"
        return self.raw


def infer_kind(raw: str) -> ValueKind:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return ValueKind.text
    if isinstance(parsed, list):
        return ValueKind.string_list
    if isinstance(parsed, bool):
        return ValueKind.bool
    return ValueKind.text


def _toggle_labels(options: Optional[Sequence[str]]) -> List[str]:
    if options and len(options) >= 2:
        return [str(options[0]), str(options[1])]
    return DEFAULT_TOGGLE_LABELS


def display_value(
    raw: Optional[str],
    control_type: Optional[str] = None,
    options: Optional[Sequence[str]] = None,
    kind: Optional[str] = None,
) -> str:
    """
    Render a stored answer for people to read.

    Lists are joined with ", ". Toggle answers map true/false onto the field's
    two option labels (defaulting to Yes/No). Anything that is not JSON is
    shown as-is, and an empty answer as "-".
    """
    if raw is None:
        return EMPTY_DISPLAY
    is_toggle = control_type == "toggle"

    if kind:
        value = FieldValue.stored(raw, kind).decode()
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        if is_toggle and value in ("true", "false"):
            value = value == "true"
        if isinstance(value, bool):
            labels = _toggle_labels(options)
            return labels[0] if value else labels[1]
        return value or EMPTY_DISPLAY

    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        if is_toggle and raw in ("true", "false"):
            labels = _toggle_labels(options)
            return labels[0] if raw == "true" else labels[1]
        return raw or EMPTY_DISPLAY

    if isinstance(parsed, list):
        return ", ".join(str(item) for item in parsed)
    if is_toggle:
        labels = _toggle_labels(options)
        if parsed is True or parsed == "true":
            return labels[0]
        if parsed is False or parsed == "false":
            return labels[1]
    if isinstance(parsed, bool):
        return "true" if parsed else "false"
    if isinstance(parsed, (dict, float, int)) or parsed is None:
        return raw
    return str(parsed)


def is_empty_answer(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def validate_responses(fields: Iterable, responses: Mapping[str, Any]) -> Dict[str, str]:
    """
    Check answers against field definitions.

    Returns ``{field_id: message}`` for every required field whose answer is
    missing, blank or an empty list. An empty dict means the answers are valid.
    """
    errors: Dict[str, str] = {}
    for field in fields:
        if not field.is_required:
            continue
        if is_empty_answer(responses.get(str(field.id))):
            errors[str(field.id)] = f"{field.label} is required"
    return errors
