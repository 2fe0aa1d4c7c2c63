import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _render(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """
    Emit a structured event.

    The message reads ``event key=value ...`` for plain handlers; the event
    name and fields are also attached to the record (``record.event``,
    ``record.fields``) for handlers that ship structured logs.
    """
    detail = " ".join(f"{key}={_render(value)}" for key, value in fields.items())
    logger.log(
        level,
        "%s",
        f"{event} {detail}".rstrip(),
        extra={"event": event, "fields": fields},
    )
