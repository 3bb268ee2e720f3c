"""Entrypoint for `python -m unsecured_jwt_info`."""

from .cli import main

if __name__ == "__main__":
    main()
