"""Command-line interface."""
from depthparallax.main import main

if __name__ == "__main__":
    main()
