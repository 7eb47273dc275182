from __future__ import annotations

import logging

_configured = False


def setup_logging(level: str = "INFO") -> None:
    global _configured
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    if not _configured:
        logging.basicConfig(
            level=lvl,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        _configured = True
    logging.getLogger("monitor").setLevel(lvl)
