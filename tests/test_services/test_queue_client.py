import pytest
import requests
from unittest.mock import MagicMock, patch

from app.services.queue_client import NSQClient, QueueError


@pytest.mark.asyncio
async def test_enqueue_posts_id_to_topic():
    response = MagicMock(status_code=200, text="OK")
    with patch("app.services.queue_client.requests.post", return_value=response) as mock_post:
        await NSQClient("http://nsqd:4151/", timeout=3).enqueue("delete_item", 42)

    mock_post.assert_called_once_with(
        "http://nsqd:4151/pub",
        params={"topic": "delete_item"},
        data="42",
        timeout=3,
    )


@pytest.mark.asyncio
async def test_enqueue_bad_status():
    response = MagicMock(status_code=500, text="E_BAD_TOPIC")
    with patch("app.services.queue_client.requests.post", return_value=response):
        with pytest.raises(QueueError, match="E_BAD_TOPIC"):
            await NSQClient("http://nsqd:4151").enqueue("nope", 1)


@pytest.mark.asyncio
async def test_enqueue_transport_error():
    with patch("app.services.queue_client.requests.post",
               side_effect=requests.ConnectionError("refused")):
        with pytest.raises(QueueError, match="refused"):
            await NSQClient("http://nsqd:4151").enqueue("delete_item", 1)
