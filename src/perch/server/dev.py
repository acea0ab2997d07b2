"""Serve a perch App with pounce.

pounce is the optional ``server`` extra (``pip install perch[server]``) and
is imported only when ``App.run()`` is called, so apps that are mounted in
another ASGI server never need it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.app import App

logger = logging.getLogger("perch.server")


def run_dev_server(
    app: App,
    host: str,
    port: int,
    *,
    reload: bool = False,
    log_level: str = "info",
    app_path: str | None = None,
) -> None:
    """Run a single-worker pounce server until interrupted.

    ``app_path`` (``"module:attribute"``) lets pounce re-import the app
    when ``reload`` restarts it.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(host=host, port=port, workers=1, reload=reload, log_level=log_level)
    logger.info("perch serving on http://%s:%d%s", host, port, " (reload)" if reload else "")
    Server(config, app, app_path=app_path).run()
