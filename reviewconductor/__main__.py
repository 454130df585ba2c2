"""Module entrypoint for ``python -m reviewconductor``.

All argument parsing and runtime setup happen in ``reviewconductor.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
