import logging

from realm_operator.config import settings

# Client libraries that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "kubernetes")


def configure_logging(verbose: bool = False) -> None:
    # Accept both standard level names (e.g. "INFO") and numeric values.
    raw = str(settings.log_level).upper()
    level = getattr(logging, raw, None)
    if not isinstance(level, int):
        try:
            level = int(settings.log_level)  # type: ignore[arg-type]
        except Exception:
            level = logging.INFO
    if verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
