import sys

from dbsandbox.cli.main import entrypoint

if __name__ == "__main__":
    sys.exit(entrypoint())
