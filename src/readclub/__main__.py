"""Main entry point for the readclub package."""

from readclub.cli import app


def main():
    """Run the readclub command-line interface."""
    app()


if __name__ == "__main__":
    main()
