"""Entry point for ``python -m hablar`` and the ``hablar`` console script."""

from .cli import app


def main() -> None:
    """Run the hablar CLI."""
    app()


if __name__ == "__main__":
    main()
