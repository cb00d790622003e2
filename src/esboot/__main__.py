"""Allow `python -m esboot`."""

from esboot.cli.main import run

if __name__ == "__main__":
    run()
