"""Manual-ack Kafka consumer loop with bounded redelivery and quarantine.

A message's offset is committed only after its handler returns. A failing
handler rolls back, the partition is rewound to the failed offset and the
message is redelivered with exponential backoff. Once the delivery budget is
spent (or immediately, for payloads that fail validation) the message is
written to the ``failed_messages`` store and its offset committed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from confluent_kafka import Consumer, KafkaError, TopicPartition
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core import database
from app.core.config import settings
from app.core.exceptions import HandlerError
from app.repositories.failed_message_repository import FailedMessageRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsumedMessage:
    topic: str
    partition: int
    offset: int
    key: str | None
    value: bytes

    @property
    def delivery_id(self) -> str:
        return f"{self.topic}-{self.partition}-{self.offset}"


MessageHandler = Callable[[Session, ConsumedMessage], None]


def consumer_config(group_id: str) -> dict[str, Any]:
    return {
        "bootstrap.servers": settings.KAFKA_BOOTSTRAP_SERVERS,
        "client.id": f"{settings.KAFKA_CLIENT_ID}-{group_id}",
        "group.id": group_id,
        "enable.auto.commit": False,
        "auto.offset.reset": "earliest",
        "isolation.level": "read_committed",
    }


class MessageConsumer:
    def __init__(
        self,
        group_id: str,
        topics: list[str],
        handler: MessageHandler,
        consumer: Consumer | None = None,
        session_factory: Callable[[], Session] | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        backoff_max_seconds: float | None = None,
        poll_timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.group_id = group_id
        self.topics = topics
        self.handler = handler
        self.consumer = consumer if consumer is not None else Consumer(consumer_config(group_id))
        self.session_factory = session_factory or database.new_session
        self.max_attempts = max_attempts or settings.KAFKA_MAX_DELIVERY_ATTEMPTS
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.KAFKA_RETRY_BACKOFF_SECONDS
        )
        self.backoff_max_seconds = (
            backoff_max_seconds
            if backoff_max_seconds is not None
            else settings.KAFKA_RETRY_BACKOFF_MAX_SECONDS
        )
        self.poll_timeout = (
            poll_timeout if poll_timeout is not None else settings.KAFKA_POLL_TIMEOUT_SECONDS
        )
        self.sleep = sleep
        self.running = False
        # (topic, partition, offset) -> failed deliveries so far
        self._attempts: dict[tuple[str, int, int], int] = {}

    def subscribe(self) -> None:
        self.consumer.subscribe(self.topics)
        logger.info("Group %s subscribed to %s", self.group_id, ", ".join(self.topics))

    def run(self, max_messages: int | None = None) -> int:
        """Poll and process until stopped. Returns the number of committed messages."""
        self.subscribe()
        self.running = True
        committed = 0
        try:
            while self.running:
                if max_messages is not None and committed >= max_messages:
                    break
                msg = self.consumer.poll(self.poll_timeout)
                if msg is None:
                    continue
                if msg.error():
                    if msg.error().code() == KafkaError._PARTITION_EOF:
                        continue
                    logger.error("Consumer error in group %s: %s", self.group_id, msg.error())
                    continue
                if self.process(msg):
                    committed += 1
        finally:
            self.close()
        return committed

    def stop(self) -> None:
        self.running = False

    def close(self) -> None:
        self.consumer.close()
        logger.info("Consumer for group %s closed", self.group_id)

    def process(self, msg: Any) -> bool:
        """Handle one polled message.

        Returns:
            True if the offset was committed (handled or quarantined), False if
            the partition was rewound for redelivery.
        """
        message = ConsumedMessage(
            topic=msg.topic(),
            partition=msg.partition(),
            offset=msg.offset(),
            key=msg.key().decode("utf-8") if msg.key() else None,
            value=msg.value() or b"",
        )
        coords = (message.topic, message.partition, message.offset)
        attempt = self._attempts.get(coords, 0) + 1

        session = self.session_factory()
        try:
            self.handler(session, message)
        except ValidationError as exc:
            session.rollback()
            self._attempts.pop(coords, None)
            error = HandlerError(self.group_id, message.topic, message.partition, message.offset, exc)
            logger.error("Undecodable message, quarantining: %s", error)
            self._quarantine(message, exc, attempt)
            self._commit(msg)
            return True
        except Exception as exc:
            session.rollback()
            error = HandlerError(self.group_id, message.topic, message.partition, message.offset, exc)
            if attempt >= self.max_attempts:
                self._attempts.pop(coords, None)
                logger.error(
                    "Giving up after %d attempts, quarantining: %s", attempt, error
                )
                self._quarantine(message, exc, attempt)
                self._commit(msg)
                return True

            self._attempts[coords] = attempt
            delay = min(self.backoff_seconds * (2 ** (attempt - 1)), self.backoff_max_seconds)
            logger.warning(
                "Attempt %d/%d failed, redelivering in %.2fs: %s",
                attempt,
                self.max_attempts,
                delay,
                error,
            )
            self.consumer.seek(
                TopicPartition(message.topic, message.partition, message.offset)
            )
            self.sleep(delay)
            return False
        finally:
            session.close()

        self._attempts.pop(coords, None)
        self._commit(msg)
        return True

    def _commit(self, msg: Any) -> None:
        self.consumer.commit(message=msg, asynchronous=False)

    def _quarantine(self, message: ConsumedMessage, exc: BaseException, attempts: int) -> None:
        session = self.session_factory()
        try:
            failed = FailedMessageRepository(session).create(
                consumer_group=self.group_id,
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
                message_key=message.key,
                payload=message.value.decode("utf-8", errors="replace"),
                error_type=type(exc).__name__,
                error_message=str(exc)[:4000],
                attempts=attempts,
            )
            logger.error(
                "Quarantined %s[%d]@%d for group %s as failed message %s",
                message.topic,
                message.partition,
                message.offset,
                self.group_id,
                failed.id,
            )
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
