"""Command-line interface."""
from imfx.main import main

if __name__ == "__main__":
    main()
