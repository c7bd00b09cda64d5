"""
Convenience entrypoint for the SIGINT AI assistant.

Allows running `python main.py` in addition to the `sigint-ai` console script.
"""

from sigint_ai.cli import main


if __name__ == "__main__":
    main()
