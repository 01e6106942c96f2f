from unittest.mock import MagicMock, Mock, patch

from farmbot.services.alert_service import (
    alert_critical,
    alert_error,
    alert_warning,
    send_alert,
)


def configured(func):
    func = patch("farmbot.services.alert_service.ALERT_WHATSAPP_TO", "224600000000")(func)
    func = patch("farmbot.services.alert_service.WHATSAPP_TOKEN", "test-token")(func)
    func = patch("farmbot.services.alert_service.WHATSAPP_PHONE_NUMBER_ID", "1111")(func)
    return func


def _ok_client(mock_client_class, status_code=200):
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_client.post.return_value = mock_response
    return mock_client


class TestSendAlert:
    @patch("farmbot.services.alert_service.ALERT_WHATSAPP_TO", None)
    def test_returns_false_when_not_configured(self):
        result = send_alert("ERROR", "Test message")
        assert result is False

    @configured
    @patch("farmbot.services.alert_service.httpx.Client")
    def test_sends_alert_to_whatsapp(self, mock_client_class):
        mock_client = _ok_client(mock_client_class)

        result = send_alert("ERROR", "Test error message")

        assert result is True
        mock_client.post.assert_called_once()

        call_args = mock_client.post.call_args
        assert call_args[0][0].endswith("/1111/messages")
        json_data = call_args[1]["json"]
        assert json_data["to"] == "224600000000"
        assert "ERROR" in json_data["text"]["body"]

    @configured
    @patch("farmbot.services.alert_service.httpx.Client")
    def test_includes_context_in_message(self, mock_client_class):
        mock_client = _ok_client(mock_client_class)

        send_alert("ERROR", "Test message", {"record": "mortality", "error": "db down"})

        body = mock_client.post.call_args[1]["json"]["text"]["body"]
        assert "record: mortality" in body
        assert "db down" in body

    @configured
    @patch("farmbot.services.alert_service.httpx.Client")
    def test_returns_false_on_api_error(self, mock_client_class):
        _ok_client(mock_client_class, status_code=401)
        assert send_alert("ERROR", "Test message") is False

    @configured
    @patch("farmbot.services.alert_service.httpx.Client")
    def test_returns_false_on_exception(self, mock_client_class):
        mock_client_class.return_value.__enter__.side_effect = Exception("Network error")
        assert send_alert("ERROR", "Test message") is False


class TestAlertShortcuts:
    @patch("farmbot.services.alert_service.send_alert")
    def test_alert_error_calls_send_alert_with_error_level(self, mock_send):
        mock_send.return_value = True

        result = alert_error("Test error", {"key": "value"})

        mock_send.assert_called_once_with("ERROR", "Test error", {"key": "value"})
        assert result is True

    @patch("farmbot.services.alert_service.send_alert")
    def test_alert_critical(self, mock_send):
        alert_critical("Critical issue")
        mock_send.assert_called_once_with("CRITICAL", "Critical issue", None)

    @patch("farmbot.services.alert_service.send_alert")
    def test_alert_warning(self, mock_send):
        alert_warning("Warning message")
        mock_send.assert_called_once_with("WARNING", "Warning message", None)


class TestAlertEmojis:
    @configured
    @patch("farmbot.services.alert_service.httpx.Client")
    def test_critical_has_correct_emoji(self, mock_client_class):
        mock_client = _ok_client(mock_client_class)

        send_alert("CRITICAL", "Test")

        assert "🔥" in mock_client.post.call_args[1]["json"]["text"]["body"]
