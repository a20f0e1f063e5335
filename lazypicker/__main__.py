"""Module entrypoint for ``python -m lazypicker``.

All argument parsing and runtime setup happen in ``lazypicker.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
