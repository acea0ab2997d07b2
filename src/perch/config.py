"""Application configuration.

One frozen dataclass read by ``App`` (server settings) and by
``perch.hosting`` (where content lives on disk).
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, web_root="public")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "info"

    # Hosting: relative web_root resolves against content_root (cwd when None)
    content_root: str | Path | None = None
    web_root: str | Path | None = "wwwroot"
