"""
Unit tests for custom field answer capture, decoding, display and validation.
"""
import uuid
import pytest
from types import SimpleNamespace

from eventdesk.services.field_values import (
    FieldValue,
    ValueKind,
    display_value,
    is_empty_answer,
    validate_responses,
)


def field(label, is_required=False):
    return SimpleNamespace(id=uuid.uuid4(), label=label, is_required=is_required)


@pytest.mark.unit
class TestCapture:

    def test_list_becomes_string_list(self):
        """Test list becomes string list."""
        value = FieldValue.capture(["x", "y"])
        assert value.kind is ValueKind.string_list
        assert value.decode() == ["x", "y"]

    def test_list_order_is_preserved(self):
        """Test list order is preserved."""
        assert FieldValue.capture(["c", "a", "b"]).decode() == ["c", "a", "b"]

    def test_list_items_keep_their_json_types(self):
        """Test list items keep their json types."""
        value = FieldValue.capture([1, 2])
        assert value.raw == "[1, 2]"
        assert value.decode() == [1, 2]

    def test_bool_becomes_bool(self):
        """Test bool becomes bool."""
        value = FieldValue.capture(False)
        assert value == FieldValue(ValueKind.bool, "false")
        assert value.decode() is False

    def test_scalars_become_text(self):
        """Test scalars become text."""
        assert FieldValue.capture("hello") == FieldValue(ValueKind.text, "hello")
        assert FieldValue.capture(42) == FieldValue(ValueKind.text, "42")

    def test_objects_are_json_text(self):
        """Test objects are json text."""
        value = FieldValue.capture({"a": 1})
        assert value.kind is ValueKind.text
        assert value.raw == '{"a": 1}'

    def test_text_that_looks_like_json_stays_text(self):
        """Test text that looks like json stays text."""
        # Captured as text, so no guessing on the way back out
        assert FieldValue.capture('["not", "a list"]').decode() == '["not", "a list"]'


@pytest.mark.unit
class TestLegacyRows:
    """Rows stored without a kind fall back to JSON array / boolean / raw string."""

    def test_json_array(self):
        """Test legacy JSON array rows."""
        assert FieldValue.stored('["x","y"]', None).decode() == ["x", "y"]

    def test_boolean(self):
        """Test legacy boolean rows."""
        assert FieldValue.stored("true", None).decode() is True

    def test_plain_text(self):
        """Test plain text."""
        assert FieldValue.stored("vegetarian", None).decode() == "vegetarian"

    def test_number_stays_text(self):
        """Test number stays text."""
        assert FieldValue.stored("42", None).decode() == "42"

    def test_recorded_kind_wins(self):
        """Test recorded kind wins."""
        assert FieldValue.stored("true", "text").decode() == "true"

    def test_malformed_list(self):
        """Test malformed list."""
        assert FieldValue.stored("oops", "string_list").decode() == ["oops"]


@pytest.mark.unit
class TestDisplay:

    def test_list_is_joined(self):
        """Test list is joined."""
        assert display_value('["Football", "Chess"]', "multiselect", kind="string_list") == "Football, Chess"

    def test_toggle_uses_option_labels(self):
        """Test toggle uses option labels."""
        options = ["Attending", "Not attending"]
        assert display_value("true", "toggle", options, kind="bool") == "Attending"
        assert display_value("false", "toggle", options, kind="bool") == "Not attending"

    def test_toggle_defaults_to_yes_no(self):
        """Test toggle defaults to yes no."""
        assert display_value("true", "toggle", None, kind="bool") == "Yes"
        assert display_value("false", "toggle", [], kind="bool") == "No"

    def test_toggle_recorded_as_text_uses_option_labels(self):
        """Test toggle recorded as text uses option labels."""
        options = ["Bringing", "Solo"]
        assert display_value("true", "toggle", options, kind="text") == "Bringing"
        assert display_value("false", "toggle", options, kind="text") == "Solo"

    def test_text_true_outside_toggle_is_left_alone(self):
        """Test text true outside toggle is left alone."""
        assert display_value("true", "text", kind="text") == "true"

    def test_empty_text(self):
        """Test empty text."""
        assert display_value("", "text", kind="text") == "-"
        assert display_value(None) == "-"

    def test_legacy_list(self):
        """Test legacy list."""
        assert display_value('["a","b"]') == "a, b"

    def test_legacy_toggle(self):
        """Test legacy toggle."""
        assert display_value("true", "toggle", ["Sure", "Nope"]) == "Sure"
        assert display_value("false", "toggle") == "No"

    def test_legacy_boolean_outside_toggle(self):
        """Test legacy boolean outside toggle."""
        assert display_value("true", "text") == "true"

    def test_legacy_plain_text(self):
        """Test legacy plain text."""
        assert display_value("no nuts please", "textarea") == "no nuts please"

    def test_legacy_json_string_is_unquoted(self):
        """Test legacy json string is unquoted."""
        assert display_value('"hello"') == "hello"


@pytest.mark.unit
class TestValidation:

    def test_empty_answers(self):
        """Test empty answers."""
        assert is_empty_answer(None)
        assert is_empty_answer("   ")
        assert is_empty_answer([])
        assert not is_empty_answer(False)
        assert not is_empty_answer(["x"])
        assert not is_empty_answer("x")

    def test_missing_required_fields_are_reported_by_id(self):
        """Test missing required fields are reported by id."""
        diet = field("Dietary needs", is_required=True)
        activities = field("Activities", is_required=True)
        notes = field("Notes")

        errors = validate_responses([diet, activities, notes], {str(activities.id): []})

        assert errors == {
            str(diet.id): "Dietary needs is required",
            str(activities.id): "Activities is required",
        }

    def test_valid_answers(self):
        """Test valid answers."""
        diet = field("Dietary needs", is_required=True)
        guest = field("Guest", is_required=True)
        responses = {str(diet.id): "none", str(guest.id): False}
        assert validate_responses([diet, guest], responses) == {}
