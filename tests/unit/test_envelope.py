"""
Unit tests for the shared response envelope.
"""

from shared.envelope import Envelope


class TestEnvelope:
    """Test cases for Envelope."""

    def test_success_drops_error(self):
        envelope = Envelope(success=True, result=[1], error="ignored")

        assert envelope.result == [1]
        assert envelope.error is None
        assert envelope.error_message is None

    def test_failure_drops_result(self):
        envelope = Envelope(success=False, result={"stale": True}, error="boom")

        assert envelope.result is None
        assert envelope.error_message == "boom"

    def test_failure_without_detail_gets_default(self):
        assert Envelope(success=False).error == "Request failed"

    def test_vendor_errors_joined(self):
        envelope = Envelope.from_payload({
            "success": False,
            "errors": [{"code": 10000, "message": "Authentication error"}, {"code": 7003, "message": "bad route"}],
            "messages": [],
        })

        assert envelope.error_message == "Authentication error; bad route"
        assert envelope.errors[0].code == 10000

    def test_extra_vendor_keys_preserved(self):
        envelope = Envelope.from_payload({
            "success": True,
            "result": [],
            "result_info": {"page": 1, "total_count": 0},
        })

        assert envelope.to_dict()["result_info"] == {"page": 1, "total_count": 0}

    def test_payload_without_success(self):
        envelope = Envelope.from_payload({"error": "Unauthorized"})

        assert envelope.success is False
        assert envelope.error == "Unexpected response body"

    def test_non_object_payload(self):
        assert Envelope.from_payload(["a"]).success is False

    def test_malformed_errors_list(self):
        envelope = Envelope.from_payload({"success": False, "errors": "not-a-list"})

        assert envelope.success is False
        assert envelope.error.startswith("Malformed response envelope")

    def test_to_dict_omits_empty_fields(self):
        assert Envelope.ok({"id": "x"}).to_dict() == {"success": True, "result": {"id": "x"}}
        assert Envelope.fail("nope").to_dict() == {"success": False, "error": "nope"}
