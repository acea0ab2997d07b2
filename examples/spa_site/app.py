"""Single-page app: static files with a client-side routing fallback.

Demonstrates:
- ``map_static_files`` serving the web root (``./wwwroot``) at "/"
- a second static route under "/embedded" backed by an in-memory provider
- a JSON API route living next to the static files
- a catch-all fallback that hands every unknown path to ``index.html``

Requests for files that exist are served with caching headers. Anything
else (``/dashboard``, ``/users/42``) fails the existence check, keeps
routing, and lands on the fallback so the browser-side router can take it.

Run:
    python app.py
"""

from pathlib import Path

from perch import App, AppConfig, MemoryFileProvider, StaticFileOptions

HERE = Path(__file__).parent

app = App(
    AppConfig(content_root=HERE),
    static_file_defaults=StaticFileOptions(cache_control="public, max-age=3600"),
)


def nosniff(context):
    return context.response.with_header("X-Content-Type-Options", "nosniff")


# ---------------------------------------------------------------------------
# Static files
# ---------------------------------------------------------------------------

# ./wwwroot at the root, using the app-wide defaults
app.map_static_files()

# Build metadata compiled into the app
app.map_static_files(
    "/embedded",
    StaticFileOptions(
        file_provider=MemoryFileProvider({"version.txt": "perch-spa 1.0\n"}),
        on_prepare_response=nosniff,
    ),
    name="embedded",
).add(lambda route: route.metadata.update(source="memory"))


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@app.route("/api/health")
def health():
    return {"ok": True}


# ---------------------------------------------------------------------------
# Client-side routing fallback (registered last)
# ---------------------------------------------------------------------------


@app.route("/{**path}", name="spa")
def spa(path: str):
    index = app.environment.web_root_file_provider.resolve("index.html")
    return index, 200, {"Cache-Control": "no-cache"}


if __name__ == "__main__":
    app.run()
