"""Entry point for running the probescan command line tool."""

from probescan.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
