"""
buildorder CLI Entry Point

Allows running the package as a module: python -m buildorder
"""

from buildorder.cli import main

if __name__ == "__main__":
    main()
