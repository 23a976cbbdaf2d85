import pytest

from src.domain.exceptions import InvalidSequence
from src.domain.services.operation_validator import validate_operations
from src.domain.services.sequence_checker import check_sequence


def _sequence(*names):
    return validate_operations((name, {"angle": 90} if name == "rotate" else {}) for name in names)


def test_minimal_pipeline_passes():
    check_sequence(_sequence("input", "output"))
    check_sequence(_sequence("input", "flip", "rotate", "output"))


@pytest.mark.parametrize(
    ("names", "message"),
    [
        ((), "at least an input and an output"),
        (("input",), "at least an input and an output"),
        (("flip", "output"), "An input operation must be the first operation."),
        (("output", "input"), "An input operation must be the first operation."),
        (("input", "flip"), "An output operation must be the last operation."),
        (("input", "input", "output"), "Only one input operation"),
        (("input", "output", "flip", "output"), "Only one output operation"),
    ],
)
def test_invalid_shapes(names, message):
    with pytest.raises(InvalidSequence, match=message):
        check_sequence(_sequence(*names))
