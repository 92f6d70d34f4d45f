"""Kafka producer used by the lifecycle engines to publish saga messages."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from confluent_kafka import KafkaException, Producer

from app.core.config import settings
from app.core.exceptions import MessagingError
from app.schemas.events import EventMessage

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, topic: str, key: str, message: EventMessage) -> None: ...


def producer_config() -> dict[str, Any]:
    """Idempotent producer: acks from all replicas, bounded retries."""
    return {
        "bootstrap.servers": settings.KAFKA_BOOTSTRAP_SERVERS,
        "client.id": settings.KAFKA_CLIENT_ID,
        "enable.idempotence": True,
        "acks": "all",
        "retries": settings.KAFKA_PRODUCER_RETRIES,
        "delivery.timeout.ms": settings.KAFKA_DELIVERY_TIMEOUT_MS,
        "max.in.flight.requests.per.connection": 5,
    }


class EventProducer:
    """Publishes JSON messages and blocks until the broker acknowledges them.

    ``publish`` only returns once the delivery report for the message has
    arrived without error, so callers can commit their own transaction
    afterwards knowing the message is durable.
    """

    def __init__(self, producer: Producer | None = None, timeout: float | None = None):
        self.producer = producer if producer is not None else Producer(producer_config())
        self.timeout = timeout if timeout is not None else settings.KAFKA_PUBLISH_TIMEOUT_SECONDS

    def publish(self, topic: str, key: str, message: EventMessage) -> None:
        errors: list[Any] = []

        def on_delivery(err: Any, msg: Any) -> None:
            if err is not None:
                errors.append(err)
            else:
                logger.debug(
                    "Delivered %s key=%s to [%s] at offset %s",
                    msg.topic(),
                    key,
                    msg.partition(),
                    msg.offset(),
                )

        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8"),
                value=message.to_json(),
                on_delivery=on_delivery,
            )
            self.producer.poll(0)
        except (BufferError, KafkaException) as exc:
            logger.error("Failed to enqueue message for %s key=%s: %s", topic, key, exc)
            raise MessagingError(f"Could not enqueue message: {exc}", topic, key) from exc

        remaining = self.producer.flush(self.timeout)
        if remaining > 0:
            logger.error(
                "Message for %s key=%s not delivered within %ss", topic, key, self.timeout
            )
            raise MessagingError(
                f"{remaining} message(s) not delivered within {self.timeout}s", topic, key
            )
        if errors:
            logger.error("Message delivery failed for %s key=%s: %s", topic, key, errors[0])
            raise MessagingError(f"Message delivery failed: {errors[0]}", topic, key)

        logger.info("Published %s to %s key=%s", type(message).__name__, topic, key)

    def close(self) -> None:
        remaining = self.producer.flush(self.timeout)
        if remaining > 0:
            logger.warning("%d messages still queued on producer close", remaining)


_event_producer: EventProducer | None = None


def get_event_producer() -> EventProducer:
    """Process-wide producer, created on first use.

    Also serves as the FastAPI dependency for routes that publish.
    """
    global _event_producer
    if _event_producer is None:
        _event_producer = EventProducer()
    return _event_producer


def close_event_producer() -> None:
    global _event_producer
    if _event_producer is not None:
        _event_producer.close()
        _event_producer = None
