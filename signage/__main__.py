from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

import uvicorn

from .app import create_app
from .config.loader import load_settings
from .logs import configure_logging
from .models.config import LoggingSettings


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Signage widget player")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument("--catalog", type=Path, default=None, help="Widget catalog (YAML or JSON)")
    parser.add_argument("--zone", type=int, default=None, help="Zone id hosting the widgets")
    parser.add_argument("--display", type=int, default=None, help="Display id of the zone")
    parser.add_argument("--host", default=None, help="Host interface to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    settings = load_settings(args.config)

    overrides = {}
    if args.catalog is not None:
        overrides["catalog_path"] = str(args.catalog)
    if args.zone is not None:
        overrides["zone_id"] = args.zone
    if args.display is not None:
        overrides["display_id"] = args.display
    api = settings.api.model_copy(
        update={k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None}
    )
    overrides["api"] = api
    if args.log_level:
        overrides["logging"] = LoggingSettings.model_validate(
            {**settings.logging.model_dump(), "level": args.log_level.upper()}
        )
    settings = settings.model_copy(update=overrides)

    configure_logging(settings.logging)
    app = create_app(settings)
    uvicorn.run(app, host=api.host, port=api.port, log_level=settings.logging.level.lower())


if __name__ == "__main__":  # pragma: no cover
    main()
