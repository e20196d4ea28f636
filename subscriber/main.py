import logging
import sys

from common.shutdown import ShutdownCoordinator
from protocol.errors import BrokerError, SignalError
from protocol.rabbit_session import RabbitSession
from protocol.utils.logger import config_logger
from subscriber.common.config_init import initialize_config
from subscriber.common.consumer import Consumer
from subscriber.common.delivery_handler import LogDeliveryHandler


def main(argv=None, handler=None):
    config = initialize_config(argv)
    config_logger(config["logging_level"])

    logging.info("Starting up")
    logging.info(f"Connecting to {config['url']} {config['queue']} ...")

    coordinator = ShutdownCoordinator()
    try:
        coordinator.register()
    except SignalError:
        # Nothing is open yet and no graceful close can be promised
        logging.error("Subscriber not started: shutdown signal listener unavailable")
        return 1

    session = RabbitSession(config["url"])
    try:
        session.connect()
        session.open_channel()
        logging.info("Connected to server!")

        consumer = Consumer(
            session,
            config["queue"],
            handler or LogDeliveryHandler(),
            coordinator.stop_event,
            strict=config["strict"],
            inactivity_timeout=config["inactivity_timeout"],
            prefetch_count=config["prefetch"],
        )
        consumer.run()
    except BrokerError as e:
        logging.error(f"Subscriber error: {e}")
        return 1
    finally:
        coordinator.shutdown(session)

    return 0


if __name__ == "__main__":
    sys.exit(main())
