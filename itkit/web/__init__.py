"""Server-rendered ITKit frontend. Build the app with `itkit.web.app.create_web_app`."""
