"""Allow ``python -m paycron``."""

from paycron.cli.commands import app

if __name__ == "__main__":
    app()
