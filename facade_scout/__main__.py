"""Entry point for: python -m facade_scout"""

from .cli import run

if __name__ == "__main__":
    run()
