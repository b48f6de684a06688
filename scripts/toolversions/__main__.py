"""Allow running the tracker with ``python -m toolversions``."""

from .cli import cli

if __name__ == "__main__":
    cli()
