"""Allow ``python -m pysmartme``."""

from pysmartme.cli import app


app(prog_name="smartme")
