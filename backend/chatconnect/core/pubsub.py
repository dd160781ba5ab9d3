# chatconnect/core/pubsub.py
"""
PubSub (Publish-Subscribe) module for realtime change fan-out.
The document store publishes one event per committed write on the topic of
the written document's collection; live subscriptions listen on the topics
of the collections they query and refresh themselves when notified.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Set

logger = logging.getLogger(__name__)

Listener = Callable[[dict], Awaitable[Any]]


class Channel:
    """
    Simple topic-based PubSub channel.

    Architecture:
    - Listeners are async callables receiving the event payload dict
    - Events are delivered to every listener of the topic, in turn
    - A failing listener is logged and does not stop delivery to the others

    Data structure:
    - _topics: Dict[topic_name, Set[Listener]]
    """
    def __init__(self):
        # Example: {"artifacts/app/rooms": {listener1, listener2}}
        self._topics: Dict[str, Set[Listener]] = {}

    # -------- subscribe / unsubscribe --------
    def sub(self, topic: str, listener: Listener):
        """
        Register a listener on a topic.

        Args:
            topic: Topic name (a collection path for the document store)
            listener: Async callable invoked with each published payload
        """
        self._topics.setdefault(topic, set()).add(listener)

    def unsub(self, topic: str, listener: Listener):
        """
        Remove a listener from a topic. Unknown topics/listeners are ignored.
        """
        listeners = self._topics.get(topic)
        if listeners is None:
            return
        listeners.discard(listener)
        if not listeners:
            self._topics.pop(topic, None)

    def listener_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    # -------- publish --------
    async def pub(self, topic: str, payload: dict):
        """
        Publish a payload to all listeners of a topic.

        Args:
            topic: Topic to publish to
            payload: Event dictionary handed to each listener
        """
        listeners = list(self._topics.get(topic, set()))  # Copy: listeners may unsubscribe while we iterate
        for listener in listeners:
            try:
                await listener(payload)
            except Exception:
                logger.warning("[pubsub] listener failed on topic %s", topic, exc_info=True)
