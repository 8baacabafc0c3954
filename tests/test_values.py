"""Tests for the tagged value model and dotted-path lookup."""

import pytest

from muxfmt.errors import ContextError
from muxfmt.values import ABSENT, MAX_NUMBER, Value, ValueKind, ValueMapping, render_python
from muxfmt.views import SessionView


@pytest.fixture
def context():
    return Value.from_python({
        "session": {"name": "work", "tab_count": 3, "is_current_session": True},
        "tags": ["a", "b"],
    })


class TestFromPython:
    def test_kinds(self):
        assert Value.from_python(None).kind is ValueKind.ABSENT
        assert Value.from_python(True).kind is ValueKind.BOOLEAN
        assert Value.from_python(7).kind is ValueKind.NUMBER
        assert Value.from_python("x").kind is ValueKind.TEXT
        assert Value.from_python([1, 2]).kind is ValueKind.SEQUENCE
        assert Value.from_python({"a": 1}).kind is ValueKind.MAPPING

    def test_bool_is_not_a_number(self):
        assert Value.from_python(False) == Value(ValueKind.BOOLEAN, False)

    def test_view_is_converted_field_by_field(self):
        view = SessionView(
            name="s",
            connected_clients=2,
            is_current_session=False,
            web_clients_allowed=True,
            web_client_count=0,
            tab_count=4,
        )
        value = Value.from_python(view)
        assert value.kind is ValueKind.MAPPING
        assert value.lookup("tab_count") == Value(ValueKind.NUMBER, 4)
        assert value.lookup("web_clients_allowed") == Value(ValueKind.BOOLEAN, True)

    @pytest.mark.parametrize("bad", [-1, MAX_NUMBER + 1, 1.5, object()])
    def test_rejects_values_outside_the_model(self, bad):
        with pytest.raises(ContextError):
            Value.from_python(bad)


class TestLookup:
    def test_nested_path(self, context):
        assert context.lookup("session.name") == Value(ValueKind.TEXT, "work")

    def test_missing_segment_is_absent(self, context):
        assert context.lookup("session.nope") is ABSENT
        assert context.lookup("nope.name") is ABSENT

    def test_type_mismatch_is_absent(self, context):
        # session.name is text; it has no fields
        assert context.lookup("session.name.length") is ABSENT

    def test_sequence_index(self, context):
        assert context.lookup("tags.1") == Value(ValueKind.TEXT, "b")
        assert context.lookup("tags.5") is ABSENT

    def test_empty_segment_is_absent(self, context):
        assert context.lookup("session..name") is ABSENT


class TestRender:
    def test_text_forms(self):
        assert Value.from_python(None).render() == ""
        assert Value.from_python(True).render() == "true"
        assert Value.from_python(12).render() == "12"
        assert Value.from_python(["a", 1]).render() == "[a, 1]"
        assert render_python({"a": 1}) == "[object]"

    def test_to_python_round_trips_plain_data(self, context):
        assert context.to_python() == {
            "session": {"name": "work", "tab_count": 3, "is_current_session": True},
            "tags": ["a", "b"],
        }


class TestTemplateView:
    def test_mappings_are_wrapped_and_sequences_listed(self, context):
        view = context.to_template()
        assert isinstance(view, ValueMapping)
        assert isinstance(view["session"], ValueMapping)
        assert view["session"]["name"] == "work"
        assert view["tags"] == ["a", "b"]

    def test_absent_key_is_none(self, context):
        view = context.to_template()
        assert view["nope"] is None
        assert view["session"]["nope"] is None
        assert view.get("nope") is None

    def test_membership_and_size(self, context):
        view = context.to_template()
        assert "session" in view
        assert "nope" not in view
        assert len(view) == 2
        assert sorted(view) == ["session", "tags"]

    def test_renders_like_an_object(self, context):
        assert str(context.to_template()["session"]) == "[object]"
        assert render_python(context.to_template()) == "[object]"

    def test_scalars_pass_through(self):
        assert Value.from_python(3).to_template() == 3
        assert Value.from_python(None).to_template() is None
