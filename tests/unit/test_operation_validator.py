import pytest

from src.domain.entities.operation import OperationKind
from src.domain.exceptions import (
    InvalidOptionValue,
    MissingOption,
    UnknownOperation,
    UnknownOption,
)
from src.domain.schemas.operation_schemas import ResizeOptions
from src.domain.services.operation_validator import validate_operation, validate_operations


def test_valid_operation_is_defaulted():
    validated = validate_operation("resize", {"width": 100})
    assert validated.operation is OperationKind.RESIZE
    assert validated.options == ResizeOptions(width=100)
    assert validated.options.fit == "cover"


def test_int_is_accepted_for_float_options():
    assert validate_operation("rotate", {"angle": 90}).options.angle == 90.0


@pytest.mark.parametrize(
    ("name", "options", "key"),
    [
        ("resize", {"width": True}, "width"),
        ("resize", {"width": "100"}, "width"),
        ("resize", {"width": 10.5}, "width"),
        ("output", {"debug": "yes"}, "debug"),
        ("output", {"debug": 1}, "debug"),
        ("threshold", {"grayscale": "false"}, "grayscale"),
        ("rotate", {"angle": "90"}, "angle"),
    ],
)
def test_json_values_must_have_the_option_type(name, options, key):
    with pytest.raises(InvalidOptionValue) as exc_info:
        validate_operation(name, options)
    assert exc_info.value.key == key
    assert exc_info.value.received == options[key]


def test_path_values_are_parsed_from_strings():
    validated = validate_operation(
        "resize", {"width": "100", "without_enlargement": "true"}, from_path=True
    )
    assert validated.options == ResizeOptions(width=100, without_enlargement=True)
    with pytest.raises(InvalidOptionValue):
        validate_operation("output", {"debug": "maybe"}, from_path=True)


def test_unknown_operation():
    with pytest.raises(UnknownOperation, match="Unknown operation 'explode'"):
        validate_operation("explode", {})


def test_missing_required_option_names_the_key():
    with pytest.raises(MissingOption) as exc_info:
        validate_operation("extract", {"left": 0, "top": 0, "width": 10})
    assert exc_info.value.key == "height"
    assert "'height'" in exc_info.value.message


def test_missing_one_of_alternatives():
    with pytest.raises(MissingOption) as exc_info:
        validate_operation("resize", {})
    assert exc_info.value.keys == ("width", "height")


def test_conditional_input_requirement():
    with pytest.raises(MissingOption) as exc_info:
        validate_operation("input", {"type": "url"})
    assert exc_info.value.key == "url"


@pytest.mark.parametrize(
    ("name", "options", "key"),
    [
        ("resize", {"width": "wide"}, "width"),
        ("resize", {"width": 0}, "width"),
        ("resize", {"width": 10, "fit": "squash"}, "fit"),
        ("rotate", {"angle": 720}, "angle"),
        ("tint", {"color": "nope"}, "color"),
        ("output", {"format": "svg"}, "format"),
    ],
)
def test_invalid_option_value_names_key_and_received_value(name, options, key):
    with pytest.raises(InvalidOptionValue) as exc_info:
        validate_operation(name, options)
    error = exc_info.value
    assert error.key == key
    assert error.received == options[key]
    assert f"'{key}'" in error.message


def test_unknown_option_is_an_invalid_option_value():
    with pytest.raises(UnknownOption) as exc_info:
        validate_operation("flip", {"axis": "x"})
    assert isinstance(exc_info.value, InvalidOptionValue)
    assert exc_info.value.key == "axis"


def test_validation_stops_at_first_failing_operation():
    calls = []

    def operations():
        for item in [("input", {}), ("explode", {}), ("resize", {"width": "bad"})]:
            calls.append(item[0])
            yield item

    with pytest.raises(UnknownOperation):
        validate_operations(operations())
    assert calls == ["input", "explode"]


def test_validation_is_idempotent():
    raw = [("input", {}), ("resize", {"width": 100, "height": 50}), ("output", {"debug": True})]
    first = validate_operations(raw)
    second = validate_operations(raw)
    assert first == second
    assert raw[1][1] == {"width": 100, "height": 50}
