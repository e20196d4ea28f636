from configparser import ConfigParser
import argparse
import logging
import os

from dotenv import load_dotenv

CONFIG_FILE = "config.ini"
DOTENV_FILE = ".env"
DEFAULT_URL = "amqp://localhost:5672"
DEFAULT_LOGGING_LEVEL = "INFO"


def _read_defaults():
    """ Parse env variables or config file to find program config params

    Environment variables win over config.ini. A .env file in the working
    directory is loaded into the environment first. Values that are missing
    everywhere stay None and must then be given on the command line.
    """
    load_dotenv(DOTENV_FILE)
    config = ConfigParser(os.environ, interpolation=None)
    # If config.ini does not exist the original config object is not modified
    config.read(CONFIG_FILE)

    config_params = {}
    try:
        config_params["logging_level"] = os.getenv('LOGGING_LEVEL', config.get("PUBLISHER", "LOGGING_LEVEL", fallback=DEFAULT_LOGGING_LEVEL))
        config_params["url"] = os.getenv('AMQP_ADDR', config.get("RABBITMQ", "AMQP_ADDR", fallback=DEFAULT_URL))
        config_params["exchange"] = os.getenv('PUB_EXCHANGE', config.get("PUBLISHER", "PUB_EXCHANGE", fallback=None))
        config_params["routing_key"] = os.getenv('PUB_ROUTING', config.get("PUBLISHER", "PUB_ROUTING", fallback=""))
        config_params["headers"] = os.getenv('PUB_HEADERS', config.get("PUBLISHER", "PUB_HEADERS", fallback=None))

        count = os.getenv('PUB_COUNT', config.get("PUBLISHER", "PUB_COUNT", fallback=None))
        config_params["count"] = int(count) if count not in (None, "") else None
    except ValueError as e:
        raise ValueError(f"Key could not be parsed in {CONFIG_FILE} or Env Vars. Error: {e}. Aborting publisher")

    return config_params


def initialize_config(argv=None):
    """Resolve the publisher configuration once: env/config.ini defaults, overridden by flags."""
    parser = argparse.ArgumentParser(
        prog="amqp-publish",
        description="Publish operator-confirmed messages to a RabbitMQ exchange",
    )
    try:
        defaults = _read_defaults()
    except ValueError as e:
        parser.error(str(e))

    parser.add_argument("-u", "--url", default=defaults["url"],
                        help="URL of the RabbitMQ server (env AMQP_ADDR)")
    parser.add_argument("-x", "--exchange", default=defaults["exchange"],
                        required=defaults["exchange"] is None,
                        help="Exchange to publish to (env PUB_EXCHANGE)")
    parser.add_argument("-r", "--routing-key", default=defaults["routing_key"],
                        help="The routing key to use (env PUB_ROUTING)")
    parser.add_argument("-p", "--headers", default=defaults["headers"],
                        help="Comma separated key=value headers attached to every message (env PUB_HEADERS)")
    parser.add_argument("-n", "--count", type=int, default=defaults["count"],
                        help="Send this many messages without prompting (env PUB_COUNT)")
    parser.add_argument("--logging-level", default=defaults["logging_level"],
                        help="Log level name (env LOGGING_LEVEL)")
    args = parser.parse_args(argv)

    if not isinstance(logging.getLevelName(args.logging_level.upper()), int):
        parser.error(f"Unknown logging level {args.logging_level}")
    if args.count is not None and args.count < 0:
        parser.error(f"--count must not be negative, got {args.count}")

    return {
        "url": args.url,
        "exchange": args.exchange,
        "routing_key": args.routing_key or "",
        "headers": args.headers,
        "count": args.count,
        "logging_level": args.logging_level.upper(),
    }
