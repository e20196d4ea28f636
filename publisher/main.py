import logging
import signal
import sys

from common.shutdown import ShutdownCoordinator
from protocol.errors import BrokerError
from protocol.headers import parse_headers
from protocol.rabbit_session import RabbitSession
from protocol.utils.logger import config_logger
from publisher.common.config_init import initialize_config
from publisher.common.operator_loop import FixedCount, InteractivePrompt
from publisher.common.publisher import Publisher


def get_operator_loop(config, stop_event):
    if config["count"] is not None:
        return FixedCount(config["count"], stop_event=stop_event)
    return InteractivePrompt(stop_event=stop_event)


def main(argv=None):
    config = initialize_config(argv)
    config_logger(config["logging_level"])

    logging.info("Starting up")
    logging.debug(f"action: config | result: success | url: {config['url']} | exchange: {config['exchange']} | "
                  f"routing_key: {config['routing_key']} | headers: {config['headers']}")

    coordinator = ShutdownCoordinator(interrupt=True)
    session = RabbitSession(config["url"])
    try:
        # Ctrl+C keeps its default behaviour. SIGTERM raises out of the prompt too
        coordinator.register(signals=(signal.SIGTERM,))

        headers = parse_headers(config["headers"])
        logging.info(f"Connecting to {config['url']} {config['exchange']} ...")
        session.connect()
        session.open_channel(confirms=True)

        publisher = Publisher(session, config["exchange"], config["routing_key"], headers)
        publisher.run(get_operator_loop(config, coordinator.stop_event))
    except KeyboardInterrupt:
        logging.info("Publisher stopped by user")
    except BrokerError as e:
        logging.error(f"Publisher error: {e}")
        return 1
    finally:
        coordinator.shutdown(session)

    return 0


if __name__ == "__main__":
    sys.exit(main())
