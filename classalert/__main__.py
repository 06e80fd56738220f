"""
Package entry point.

Allows running the application via:

    python -m classalert

This simply forwards execution to classalert.cli.main().
"""

from classalert.cli import main

if __name__ == "__main__":
    main()
