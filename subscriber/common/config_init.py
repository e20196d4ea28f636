from configparser import ConfigParser
import argparse
import logging
import os

from dotenv import load_dotenv

CONFIG_FILE = "config.ini"
DOTENV_FILE = ".env"
DEFAULT_URL = "amqp://localhost:5672"
DEFAULT_LOGGING_LEVEL = "DEBUG"
DEFAULT_INACTIVITY_TIMEOUT = "1.0"


def _parse_bool(name, value):
    value = str(value).strip().lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no", ""):
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value}")


def _read_defaults():
    """ Parse env variables or config file to find program config params

    Environment variables win over config.ini, and a .env file in the working
    directory is loaded into the environment first. If a parameter could not
    be parsed, a ValueError is thrown.
    """
    load_dotenv(DOTENV_FILE)
    config = ConfigParser(os.environ, interpolation=None)
    config.read(CONFIG_FILE)

    config_params = {}
    try:
        config_params["logging_level"] = os.getenv('LOGGING_LEVEL', config.get("SUBSCRIBER", "LOGGING_LEVEL", fallback=DEFAULT_LOGGING_LEVEL))
        config_params["url"] = os.getenv('AMQP_ADDR', config.get("RABBITMQ", "AMQP_ADDR", fallback=DEFAULT_URL))
        config_params["queue"] = os.getenv('SUB_QUEUE', config.get("SUBSCRIBER", "SUB_QUEUE", fallback=None))
        config_params["strict"] = _parse_bool("SUB_STRICT", os.getenv('SUB_STRICT', config.get("SUBSCRIBER", "SUB_STRICT", fallback="false")))
        config_params["inactivity_timeout"] = float(os.getenv('SUB_INACTIVITY_TIMEOUT', config.get("SUBSCRIBER", "SUB_INACTIVITY_TIMEOUT", fallback=DEFAULT_INACTIVITY_TIMEOUT)))

        prefetch = os.getenv('SUB_PREFETCH', config.get("SUBSCRIBER", "SUB_PREFETCH", fallback=None))
        config_params["prefetch"] = int(prefetch) if prefetch not in (None, "") else None
    except ValueError as e:
        raise ValueError(f"Key could not be parsed in {CONFIG_FILE} or Env Vars. Error: {e}. Aborting subscriber")

    return config_params


def initialize_config(argv=None):
    """Resolve the subscriber configuration once: env/config.ini defaults, overridden by flags."""
    parser = argparse.ArgumentParser(
        prog="amqp-subscribe",
        description="Consume, print and acknowledge messages from a RabbitMQ queue",
    )
    try:
        defaults = _read_defaults()
    except ValueError as e:
        parser.error(str(e))

    parser.add_argument("-u", "--url", default=defaults["url"],
                        help="URL of the RabbitMQ server (env AMQP_ADDR)")
    parser.add_argument("-q", "--queue", default=defaults["queue"],
                        required=defaults["queue"] is None,
                        help="Queue to subscribe to (env SUB_QUEUE)")
    parser.add_argument("--prefetch", type=int, default=defaults["prefetch"],
                        help="Channel prefetch count (env SUB_PREFETCH)")
    parser.add_argument("--strict", action="store_true", default=defaults["strict"],
                        help="Stop on the first delivery that cannot be decoded (env SUB_STRICT)")
    parser.add_argument("--inactivity-timeout", type=float, default=defaults["inactivity_timeout"],
                        help="Seconds between shutdown checks while idle (env SUB_INACTIVITY_TIMEOUT)")
    parser.add_argument("--logging-level", default=defaults["logging_level"],
                        help="Log level name (env LOGGING_LEVEL)")
    args = parser.parse_args(argv)

    if not isinstance(logging.getLevelName(args.logging_level.upper()), int):
        parser.error(f"Unknown logging level {args.logging_level}")
    if args.inactivity_timeout <= 0:
        parser.error(f"--inactivity-timeout must be positive, got {args.inactivity_timeout}")
    if args.prefetch is not None and args.prefetch < 0:
        parser.error(f"--prefetch must not be negative, got {args.prefetch}")

    return {
        "url": args.url,
        "queue": args.queue,
        "prefetch": args.prefetch,
        "strict": args.strict,
        "inactivity_timeout": args.inactivity_timeout,
        "logging_level": args.logging_level.upper(),
    }
