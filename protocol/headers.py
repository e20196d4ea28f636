import logging
from typing import Dict, Iterable, Optional, Union

HEADER_SEPARATOR = ","
KEY_VALUE_SEPARATOR = "="


def parse_headers(entries: Optional[Union[str, Iterable[str]]]) -> Optional[Dict[str, str]]:
    """Build the header map attached to every outgoing message of a run.

    ``entries`` is either the raw comma-separated flag value (``"a=1,b=2"``)
    or an already split sequence of ``key=value`` strings. Each entry is split
    on its first ``=`` only, so values may themselves contain ``=``.

    ``None`` means the flag was not given and yields ``None``: no headers
    property is attached at all. An explicitly empty input yields ``{}``.
    Entries without ``=`` or without a key are dropped with a warning and
    the rest is still parsed. Spaces around keys are trimmed, values are
    kept as given. Duplicate keys keep the last value.
    """
    if entries is None:
        return None

    if isinstance(entries, str):
        entries = entries.split(HEADER_SEPARATOR)

    headers = {}
    for entry in entries:
        if not entry.strip():
            continue

        key, sep, value = entry.partition(KEY_VALUE_SEPARATOR)
        key = key.strip()
        if not sep or not key:
            logging.warning(f"Dropping header '{entry.strip()}': expected key=value")
            continue

        # values are kept verbatim
        headers[key] = value

    logging.debug(f"Parsed headers: {headers}")
    return headers


def render_headers(headers) -> str:
    """Render received headers as ``key=value`` pairs joined by ``", "``.

    Only long-string values are shown; any other AMQP field type renders as
    an empty string rather than failing the delivery.
    """
    if not headers:
        return ""

    return ", ".join(f"{key}={_long_string(value)}" for key, value in headers.items())


def _long_string(value) -> str:
    # pika decodes both byte arrays and non UTF-8 long strings to bytes, so
    # only str is known to be a long string
    if isinstance(value, str):
        return value
    return ""
