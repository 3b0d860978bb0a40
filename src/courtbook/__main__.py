"""Allow running as python -m courtbook."""

from courtbook.cli.main import app

if __name__ == "__main__":
    app()
