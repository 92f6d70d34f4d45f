"""Run one consumer group: ``python -m app.consumers {payment,subscription,notification}``."""

import argparse
import logging
import signal

from app.core.config import settings
from app.messaging.consumer import MessageConsumer
from app.messaging.handlers import consumer_bindings

logger = logging.getLogger(__name__)


def build_consumer(name: str) -> MessageConsumer:
    binding = consumer_bindings()[name]
    return MessageConsumer(
        group_id=binding.group_id,
        topics=binding.topics,
        handler=binding.handler,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run a renewal saga consumer group")
    parser.add_argument("group", choices=sorted(consumer_bindings()))
    parser.add_argument(
        "--max-messages",
        type=int,
        default=None,
        help="Stop after committing this many messages",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    consumer = build_consumer(args.group)

    def handle_signal(signum, frame):  # type: ignore[no-untyped-def]
        logger.info("Received signal %s, stopping %s consumer", signum, args.group)
        consumer.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.info("Starting %s consumer (group %s)", args.group, consumer.group_id)
    committed = consumer.run(max_messages=args.max_messages)
    logger.info("Consumer %s stopped after %d messages", args.group, committed)


if __name__ == "__main__":
    main()
