# src/xconvert/__main__.py
"""Allow running the service with `python -m xconvert`."""

from xconvert.app import main

if __name__ == "__main__":
    main()
