"""Response headers shared by the middleware and the error handlers."""

# Cross-origin isolation, required by viewers that use SharedArrayBuffer
ISOLATION_HEADERS = {
    "Cross-Origin-Embedder-Policy": "require-corp",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-site",
}
