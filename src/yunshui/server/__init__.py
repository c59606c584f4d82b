"""HTTP server: FastAPI app, routes and caller identity."""
