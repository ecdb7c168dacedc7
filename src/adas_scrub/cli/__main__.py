"""Allow ``python -m adas_scrub.cli``."""

from adas_scrub.cli import app

app()
