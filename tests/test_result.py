from farmbot.services.result import INVALID_REQUEST, NOT_CONFIGURED, SEND_ERROR, Result


class TestResultSuccess:
    def test_success_creates_ok_result(self):
        result = Result.success("wamid.HBgM")
        assert result.ok is True
        assert result.value == "wamid.HBgM"
        assert result.error is None

    def test_success_with_none_value(self):
        result = Result.success(None)
        assert result.ok is True
        assert result.describe() == "ok"


class TestResultFailure:
    def test_failure_creates_not_ok_result(self):
        result = Result.failure("Graph API down", SEND_ERROR)
        assert result.ok is False
        assert result.error == "Graph API down"
        assert result.error_code == "send_error"
        assert result.value is None

    def test_failure_default_code(self):
        result = Result.failure("Error message")
        assert result.error_code == "unknown"


class TestResultUnwrapOr:
    def test_unwrap_or_returns_value_on_success(self):
        assert Result.success("actual").unwrap_or("default") == "actual"

    def test_unwrap_or_returns_default_on_failure(self):
        assert Result.failure("Error", INVALID_REQUEST).unwrap_or("default") == "default"

    def test_unwrap_or_with_none_value(self):
        assert Result.success(None).unwrap_or("default") is None


class TestErrorCodes:
    def test_known_codes_are_distinct(self):
        assert len({SEND_ERROR, INVALID_REQUEST, NOT_CONFIGURED}) == 3
