"""ITKit - internal IT knowledge base.

Two processes:
- REST API (`itkit.api.server`): articles, categories, tags, search with
  quick-answer extraction, feedback and analytics, JWT auth with roles.
- Server-rendered frontend (`itkit.web.app`) that talks to the API over HTTP.

See README for setup and usage.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
