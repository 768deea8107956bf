"""Entry point for the Doxcer notebook documentation generator."""

from src.cli.commands import doxcer


def main() -> None:
    """Launch the CLI."""
    doxcer(prog_name="doxcer")


if __name__ == "__main__":
    main()
