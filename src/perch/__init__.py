"""Perch: an ASGI micro-framework with existence-gated static file routes.

Basic usage::

    from perch import App, StaticFileOptions, MemoryFileProvider

    app = App()

    # Files under ./wwwroot, served at "/" only when they exist
    app.map_static_files()

    # A second mount with its own file system
    app.map_static_files("/assets", StaticFileOptions(
        file_provider=MemoryFileProvider({"app.js": "console.log(1)"}),
    ))

    # Everything else falls through to ordinary routes
    @app.route("/{**path}")
    def spa(path: str):
        return "<!doctype html><div id=app></div>"

    app.run()  # pip install perch[server]
"""

import importlib

__version__ = "0.1.0"

# Public name -> module that defines it, imported on first access
_EXPORTS: dict[str, str] = {
    "App": "perch.app",
    "AppConfig": "perch.config",
    "HostEnvironment": "perch.hosting",
    "Request": "perch.http.request",
    "Response": "perch.http.response",
    "FileResponse": "perch.http.response",
    "AnyResponse": "perch.middleware.protocol",
    "Middleware": "perch.middleware.protocol",
    "Next": "perch.middleware.protocol",
    "StaticFiles": "perch.middleware.static",
    "PipelineBuilder": "perch.pipeline",
    "RouteBuilder": "perch.routing.builder",
    "CompositeFileProvider": "perch.files",
    "FileInfo": "perch.files",
    "FileProvider": "perch.files",
    "MemoryFileProvider": "perch.files",
    "NullFileProvider": "perch.files",
    "PhysicalFileProvider": "perch.files",
    "CompressionMode": "perch.staticfiles.options",
    "StaticFileOptions": "perch.staticfiles.options",
    "StaticFileResponseContext": "perch.staticfiles.options",
    "FileExtensionContentTypeProvider": "perch.staticfiles.content_types",
    "FileExistsConstraint": "perch.staticfiles.endpoints",
    "map_static_files": "perch.staticfiles.endpoints",
    "PerchError": "perch.errors",
    "ConfigurationError": "perch.errors",
    "HTTPError": "perch.errors",
    "MethodNotAllowed": "perch.errors",
    "NotFound": "perch.errors",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:
    """Resolve public names lazily so ``import perch`` stays cheap."""
    module = _EXPORTS.get(name)
    if module is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(importlib.import_module(module), name)
