# ───────────────────────────────────────────────────────────
import logging

from rich.logging import RichHandler


def configure(level: str = "INFO", rich: bool = True) -> None:
    if rich:
        handler = RichHandler(rich_tracebacks=True, show_time=False, show_path=False)
        fmt = "%(message)s"
    else:
        handler = logging.StreamHandler()
        fmt = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    logging.basicConfig(level=level.upper(), format=fmt, handlers=[handler], force=True)
    logging.getLogger("roadtrip").setLevel(level.upper())
