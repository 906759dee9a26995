"""REST API (FastAPI). Build the app with `itkit.api.server.create_app`."""
