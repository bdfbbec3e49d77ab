# src/authunpack/__main__.py

import sys

try:
    from authunpack.google import cli as google_cli
except ImportError as e:
    print(
        f"Fatal Error: Could not import a required submodule.\n"
        f"Please ensure the package and its dependencies are installed.\nDetails: {e}",
        file=sys.stderr
    )
    sys.exit(1)


def main():
    google_cli.main(sys.argv[1:])


if __name__ == "__main__":
    main()
