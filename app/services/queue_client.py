import asyncio
import logging

import requests

logger = logging.getLogger(__name__)


class QueueError(Exception):
    """Raised when a work item id could not be published to NSQ."""


class NSQClient:
    """
    Publishes work item ids to nsqd over its HTTP interface.

    Workers subscribe to the topics and claim the ids. A failed publish is
    reported to the caller; nothing here retries.
    """

    def __init__(self, url: str, timeout: int = 10):
        self.url = url.rstrip("/")
        self.timeout = timeout

    async def enqueue(self, topic: str, work_item_id: int) -> None:
        """Publish one work item id to a topic."""
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._sync_enqueue, topic, work_item_id)

    def _sync_enqueue(self, topic: str, work_item_id: int) -> None:
        url = f"{self.url}/pub"
        try:
            response = requests.post(
                url,
                params={"topic": topic},
                data=str(work_item_id),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise QueueError(f"Could not queue work item {work_item_id} to {topic}: {e}") from e
        if response.status_code != 200:
            raise QueueError(
                f"NSQ returned status {response.status_code} when queueing work item "
                f"{work_item_id} to {topic}: {response.text}"
            )
        logger.info(f"Queued work item {work_item_id} to topic {topic}")
