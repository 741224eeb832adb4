"""Allow ``python -m adaptive_engine``."""

from adaptive_engine.cli import main

main()
