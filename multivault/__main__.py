"""Entry point for ``python -m multivault``."""
from .cli import main

if __name__ == "__main__":
    main()
