"""Entry point for the ASN generator web API."""

import pydantic

from asngen.app import App
from asngen.config import Config
from asngen.logging import setup_logging
from asngen.web.runner import run_server


def main() -> None:
    try:
        config = Config()
    except pydantic.ValidationError as e:
        raise SystemExit(f"Invalid configuration:\n{e}") from e
    setup_logging(config.debug)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
