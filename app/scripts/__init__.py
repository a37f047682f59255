"""Command-line maintenance scripts (``python -m app.scripts.<name>``)."""
