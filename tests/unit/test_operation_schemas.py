import pytest
from pydantic import ValidationError

from src.domain.entities.operation import OperationKind
from src.domain.exceptions import UnknownOperation
from src.domain.schemas.operation_schemas import (
    OPERATION_SCHEMAS,
    InputOptions,
    MedianOptions,
    OutputOptions,
    ResizeOptions,
    schema_for,
)


def test_every_operation_kind_has_a_schema():
    assert set(OPERATION_SCHEMAS) == set(OperationKind)


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        OPERATION_SCHEMAS[OperationKind.RESIZE] = InputOptions  # type: ignore[index]


def test_schema_for_known_and_unknown_names():
    assert schema_for("resize") is ResizeOptions
    with pytest.raises(UnknownOperation) as exc_info:
        schema_for("explode")
    assert exc_info.value.operation == "explode"


def test_defaults_are_applied():
    options = ResizeOptions(width=10)
    assert options.fit == "cover"
    assert options.background == "#000000"
    assert options.without_enlargement is False

    output = OutputOptions()
    assert output.debug is False
    assert output.format is None


def test_options_are_frozen_and_closed():
    options = ResizeOptions(width=10)
    with pytest.raises(ValidationError):
        options.width = 20
    with pytest.raises(ValidationError):
        ResizeOptions(width=10, depth=3)


def test_jpg_is_normalized_to_jpeg():
    assert OutputOptions(format="jpg").format == "jpeg"


def test_color_and_odd_size_constraints():
    with pytest.raises(ValidationError):
        ResizeOptions(width=10, background="not-a-color")
    with pytest.raises(ValidationError):
        MedianOptions(size=4)
    assert MedianOptions(size=5).size == 5


def test_conditional_requirements():
    assert ResizeOptions().missing_options() == ("width", "height")
    assert ResizeOptions(height=5).missing_options() == ()
    assert InputOptions(type="url").missing_options() == ("url",)
    assert InputOptions(type="create", width=5).missing_options() == ("height",)
    assert InputOptions().missing_options() == ()
