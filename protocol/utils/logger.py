import logging


def config_logger(logging_level):
    """
    Python custom logging initialization

    Current timestamp is added to be able to identify when each log line
    was written. pika is kept at WARNING so its frame-level chatter does not
    drown the broker session logs.
    """
    logging.basicConfig(
        format='%(asctime)s %(levelname)-8s %(message)s',
        level=logging_level,
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    logging.getLogger("pika").setLevel(logging.WARNING)
