"""Main entry point for prcommenter."""

from prcommenter.cli import app


def main() -> None:
    """Run the prcommenter CLI."""
    app()


if __name__ == "__main__":
    main()
