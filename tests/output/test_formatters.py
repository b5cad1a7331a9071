"""Tests for output mode selection."""

import json

from refsweep.output.formatters import OutputSettings, format_result
from refsweep.services.result import ServiceResult

RESULT = ServiceResult(
    ok=True,
    op="request_delete",
    data={"resource": "contact:C-0001", "status": "pendingDelete", "work_item_id": 1},
)


class TestFormatResult:
    def test_json(self) -> None:
        out = format_result(RESULT, settings=OutputSettings(json_output=True))
        parsed = json.loads(out)
        assert parsed["op"] == "request_delete"
        assert parsed["data"]["resource"] == "contact:C-0001"

    def test_quiet(self) -> None:
        out = format_result(RESULT, settings=OutputSettings(quiet=True))
        assert out == "OK: request_delete"

    def test_default_is_rich(self) -> None:
        out = format_result(RESULT)
        assert out.startswith("OK request_delete")
        assert "resource: contact:C-0001" in out
