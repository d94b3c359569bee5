import logging
import sys


class _SecretsFilter(logging.Filter):
    """Drop records that would print an Authorization header verbatim."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:
            return True
        return "Bearer " not in message


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once at startup.

    Repeated calls replace the previous handler instead of stacking them.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_duet", False):
            root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    handler.addFilter(_SecretsFilter())
    handler._duet = True
    root.addHandler(handler)

    logging.captureWarnings(True)
