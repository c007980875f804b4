"""Entry point for ``python -m fauxtime`` and the ``fauxtime`` script."""

from fauxtime import __version__
from fauxtime._cli import build_cli

app = build_cli(__version__)

if __name__ == "__main__":
    app()
