"""In-process topic broker carrying notification events to their consumers.

It mirrors the contract the pipeline expects from a message transport:
topic routing keys, durable per-consumer queues, at-least-once delivery with
a bounded number of redeliveries and a dead-letter list for events whose
handler keeps failing.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from app.config import get_settings

logger = logging.getLogger(__name__)

COMMENT_QUEUE = "notification.comment.queue"
TASK_QUEUE = "notification.task.queue"
COMMENT_BINDING = "notification.comment.*"
TASK_BINDING = "notification.task.#"

MessageHandler = Callable[[dict[str, Any]], None]

_STOP = object()


def topic_matches(pattern: str, routing_key: str) -> bool:
    """Return ``True`` when ``routing_key`` matches the topic ``pattern``.

    ``*`` matches exactly one dot-separated word and ``#`` zero or more.
    """

    return _match_words(pattern.split("."), routing_key.split("."))


def _match_words(pattern: list[str], words: list[str]) -> bool:
    if not pattern:
        return not words
    head, rest = pattern[0], pattern[1:]
    if head == "#":
        return any(_match_words(rest, words[index:]) for index in range(len(words) + 1))
    if not words:
        return False
    if head == "*" or head == words[0]:
        return _match_words(rest, words[1:])
    return False


@dataclass
class Envelope:
    routing_key: str
    body: str
    attempts: int = 0


@dataclass
class DeadLetter:
    queue: str
    routing_key: str
    body: str
    error: str
    attempts: int


@dataclass
class _BoundQueue:
    name: str
    binding: str
    messages: "queue.Queue[Any]" = field(default_factory=queue.Queue)
    handler: MessageHandler | None = None
    workers: list[threading.Thread] = field(default_factory=list)


class InMemoryBroker:
    """Route published messages to bound queues and run their handlers."""

    def __init__(
        self,
        *,
        max_retries: int | None = None,
        workers_per_queue: int | None = None,
    ) -> None:
        settings = get_settings()
        self.max_retries = settings.broker_max_retries if max_retries is None else max_retries
        self.workers_per_queue = workers_per_queue or settings.broker_workers_per_queue
        self._queues: dict[str, _BoundQueue] = {}
        self._lock = threading.Lock()
        self._running = False
        self.dead_letters: list[DeadLetter] = []
        self.metrics = {
            "published": 0,
            "unroutable": 0,
            "processed": 0,
            "redelivered": 0,
            "dead_lettered": 0,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def declare_queue(self, name: str, binding: str) -> None:
        with self._lock:
            if name in self._queues:
                self._queues[name].binding = binding
                return
            self._queues[name] = _BoundQueue(name=name, binding=binding)

    def subscribe(self, queue_name: str, handler: MessageHandler) -> None:
        with self._lock:
            bound = self._queues.get(queue_name)
            if bound is None:
                raise KeyError(f"Queue {queue_name!r} has not been declared")
            bound.handler = handler
            if self._running:
                self._start_workers(bound)

    def publish(self, routing_key: str, payload: Mapping[str, Any]) -> int:
        """Queue ``payload`` on every queue bound to ``routing_key``.

        Returns immediately with the number of queues the message was routed to.
        """

        body = json.dumps(payload)
        with self._lock:
            targets = [
                bound
                for bound in self._queues.values()
                if topic_matches(bound.binding, routing_key)
            ]
            self.metrics["published"] += 1
            if not targets:
                self.metrics["unroutable"] += 1
        if not targets:
            logger.warning("No queue bound for routing key %s; message dropped", routing_key)
            return 0
        for bound in targets:
            bound.messages.put(Envelope(routing_key=routing_key, body=body))
        return len(targets)

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            for bound in self._queues.values():
                if bound.handler is not None:
                    self._start_workers(bound)
        logger.info("Broker started with %d queue(s)", len(self._queues))

    def join(self) -> None:
        """Block until every queued message has been handled or dead-lettered."""

        for bound in list(self._queues.values()):
            bound.messages.join()

    def shutdown(self, timeout: float | None = 10.0) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            queues = list(self._queues.values())
        for bound in queues:
            for _ in bound.workers:
                bound.messages.put(_STOP)
        for bound in queues:
            for worker in bound.workers:
                worker.join(timeout=timeout)
            bound.workers.clear()
        logger.info("Broker stopped: %s", self.metrics)

    def _start_workers(self, bound: _BoundQueue) -> None:
        if bound.workers:
            return
        for index in range(self.workers_per_queue):
            worker = threading.Thread(
                target=self._consume,
                args=(bound,),
                name=f"{bound.name}-worker-{index}",
                daemon=True,
            )
            bound.workers.append(worker)
            worker.start()

    def _consume(self, bound: _BoundQueue) -> None:
        while True:
            envelope = bound.messages.get()
            try:
                if envelope is _STOP:
                    return
                self._deliver(bound, envelope)
            finally:
                bound.messages.task_done()

    def _deliver(self, bound: _BoundQueue, envelope: Envelope) -> None:
        envelope.attempts += 1
        try:
            bound.handler(json.loads(envelope.body))
        except Exception as exc:
            if envelope.attempts <= self.max_retries:
                logger.warning(
                    "Handler for %s failed (attempt %d), redelivering: %s",
                    bound.name,
                    envelope.attempts,
                    exc,
                )
                with self._lock:
                    self.metrics["redelivered"] += 1
                bound.messages.put(envelope)
                return
            logger.error(
                "Dead-lettering message from %s after %d attempt(s): %s",
                bound.name,
                envelope.attempts,
                exc,
                exc_info=exc,
            )
            with self._lock:
                self.metrics["dead_lettered"] += 1
                self.dead_letters.append(
                    DeadLetter(
                        queue=bound.name,
                        routing_key=envelope.routing_key,
                        body=envelope.body,
                        error=str(exc),
                        attempts=envelope.attempts,
                    )
                )
            return
        with self._lock:
            self.metrics["processed"] += 1


def create_notification_broker() -> InMemoryBroker:
    """Return a broker with the comment and task notification queues declared."""

    broker = InMemoryBroker()
    broker.declare_queue(COMMENT_QUEUE, COMMENT_BINDING)
    broker.declare_queue(TASK_QUEUE, TASK_BINDING)
    return broker


__all__ = [
    "COMMENT_BINDING",
    "COMMENT_QUEUE",
    "DeadLetter",
    "Envelope",
    "InMemoryBroker",
    "MessageHandler",
    "TASK_BINDING",
    "TASK_QUEUE",
    "create_notification_broker",
    "topic_matches",
]
