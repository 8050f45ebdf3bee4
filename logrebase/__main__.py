"""Entry point for running logrebase as a module.

    python -m logrebase todo
"""

from . import cli

if __name__ == "__main__":
    cli._main()
