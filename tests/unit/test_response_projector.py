import asyncio
import json
from unittest.mock import Mock

import pytest

from src.domain.entities.operation import PipelineResult
from src.domain.exceptions import ProcessingError
from src.domain.services.operation_validator import validate_operations
from src.infrastructure.api.response_projector import (
    CACHE_CONTROL,
    build_image_headers,
    project_response,
)

INFO = {"format": "png", "size": 4, "width": 2, "height": 1, "channels": 3}


def _result(**output_options):
    operations = validate_operations(
        [("input", {}), ("resize", {"width": 2}), ("output", output_options)]
    )
    return PipelineResult(operations=operations, handle="handle", metadata={"width": 2})


def test_image_headers():
    headers = build_image_headers(
        b"data",
        INFO,
        {
            "Has Alpha": False,
            "dpi": (72, 72),
            "comment": None,
            "Title": "line1\nline2",
            "Software": "a\x00b\x07c\x1bd\x7fe\tf",
        },
    )
    assert headers["Content-Type"] == "image/png"
    assert headers["Content-Length"] == "4"
    assert headers["Content-Disposition"] == "inline; filename=image.png"
    assert headers["Cache-Control"] == CACHE_CONTROL
    assert headers["ext-output-info-width"] == "2"
    assert headers["ext-output-info-channels"] == "3"
    assert headers["ext-metadata-has-alpha"] == "False"
    assert headers["ext-metadata-dpi"] == "(72, 72)"
    assert headers["ext-metadata-title"] == "line1 line2"
    assert headers["ext-metadata-software"] == "abcde\tf"
    assert "ext-metadata-comment" not in headers


def test_debug_output_returns_json_without_encoding():
    processing = Mock()
    response = asyncio.run(project_response(_result(debug=True), processing))

    assert response.media_type == "application/json"
    body = json.loads(response.body)
    assert [op["operation"] for op in body["operations"]] == ["input", "resize", "output"]
    assert body["operations"][1]["options"]["fit"] == "cover"
    assert body["metadata"] == {"width": 2}
    processing.encode.assert_not_called()


def test_image_output_is_encoded():
    processing = Mock()
    processing.encode.return_value = (b"data", INFO)
    response = asyncio.run(project_response(_result(format="png"), processing))

    processing.encode.assert_called_once_with("handle")
    assert response.status_code == 200
    assert response.body == b"data"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["ext-metadata-width"] == "2"


def test_encode_failure_is_a_processing_error():
    processing = Mock()
    processing.encode.side_effect = OSError("encoder error")
    with pytest.raises(ProcessingError, match="while encoding: encoder error"):
        asyncio.run(project_response(_result(), processing))
