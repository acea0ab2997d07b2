"""Host environment: where the app's content lives on disk.

Derived once from ``AppConfig`` when the ``App`` is created. The web root
file provider is what static file routes serve from when their options
name no provider of their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from perch.config import AppConfig
from perch.files.base import FileProvider
from perch.files.physical import PhysicalFileProvider

logger = logging.getLogger("perch.hosting")


@dataclass(frozen=True, slots=True)
class HostEnvironment:
    """Resolved content locations.

    ``web_root_file_provider`` is ``None`` when no web root is configured or
    the directory does not exist. Binding a static route that relies on it
    then fails with ``ConfigurationError``.
    """

    content_root: Path
    web_root: Path | None = None
    web_root_file_provider: FileProvider | None = None

    @classmethod
    def from_config(cls, config: AppConfig) -> HostEnvironment:
        content_root = Path(config.content_root or Path.cwd()).resolve()
        if config.web_root is None:
            return cls(content_root=content_root)

        web_root = (content_root / config.web_root).resolve()
        if not web_root.is_dir():
            logger.warning("Web root %s does not exist; no default file provider", web_root)
            return cls(content_root=content_root, web_root=web_root)

        return cls(
            content_root=content_root,
            web_root=web_root,
            web_root_file_provider=PhysicalFileProvider(web_root),
        )
