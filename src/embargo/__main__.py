"""Allow `python -m embargo`."""

from .cli import main

main()
