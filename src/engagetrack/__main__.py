"""Entry point for 'python -m engagetrack'."""

from engagetrack.cli import main

if __name__ == "__main__":
    main()
