from __future__ import annotations

from maxmovies.app.api.app import create_app

app = create_app()
