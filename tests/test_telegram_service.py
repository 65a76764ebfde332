import json

import httpx
import pytest

from nemory.services.telegram_service import (
    DeliveryConfigError,
    InvalidDestinationError,
    InvalidMessageError,
    TelegramDeliverer,
    TelegramDeliveryError,
    validate_chat_id,
)


class Recorder:
    def __init__(self, response=None, error=None):
        self.response = response or httpx.Response(200, json={"ok": True, "result": {"message_id": 42}})
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error(request)
        return self.response


def deliverer(handler):
    return TelegramDeliverer(httpx.AsyncClient(transport=httpx.MockTransport(handler)), "123:ABC")


async def test_send_message_posts_html():
    handler = Recorder()

    ack = await deliverer(handler).send_message("-1001234567890", "<b>Hi</b>")

    assert ack.message_id == 42
    request = handler.requests[0]
    assert str(request.url) == "https://api.telegram.org/bot123:ABC/sendMessage"
    body = json.loads(request.content)
    assert body == {
        "chat_id": "-1001234567890",
        "text": "<b>Hi</b>",
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }


@pytest.mark.parametrize("chat_id", ["", "   ", None, "abc", "@ab", "12 34"])
async def test_invalid_chat_id_rejected_before_network(chat_id):
    handler = Recorder()
    with pytest.raises(InvalidDestinationError):
        await deliverer(handler).send_message(chat_id, "hello")
    assert handler.requests == []


@pytest.mark.parametrize("text", ["", "  \n", "x" * 4097, "📌" * 2049])
async def test_invalid_message_rejected_before_network(text):
    handler = Recorder()
    with pytest.raises(InvalidMessageError):
        await deliverer(handler).send_message("12345", text)
    assert handler.requests == []


def test_valid_chat_ids():
    assert validate_chat_id(" 12345 ") == "12345"
    assert validate_chat_id("@nemory_digest") == "@nemory_digest"


async def test_api_error_surfaces_telegram_description():
    handler = Recorder(
        response=httpx.Response(400, json={"ok": False, "error_code": 400, "description": "Bad Request: chat not found"})
    )

    with pytest.raises(TelegramDeliveryError) as exc:
        await deliverer(handler).send_message("12345", "hello")

    assert exc.value.description == "Bad Request: chat not found"
    assert exc.value.status_code == 400
    assert str(exc.value) == "Telegram API error: Bad Request: chat not found"


async def test_network_error_is_delivery_error():
    handler = Recorder(error=lambda request: httpx.ConnectError("refused", request=request))
    with pytest.raises(TelegramDeliveryError, match="network error"):
        await deliverer(handler).send_message("12345", "hello")


def test_missing_token_is_config_error():
    with pytest.raises(DeliveryConfigError):
        TelegramDeliverer(httpx.AsyncClient(), "")
