"""Command that loads the configuration and serves the loan calculator."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import yaml

from loancalc.cache import Cache
from loancalc.handlers import create_app
from loancalc.service import Service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """Server settings."""

    port: int = 0


def load_config(path: str | Path = "config.yml", base_path: str | Path | None = None) -> Config:
    """Read a YAML config lying inside ``base_path``; ValueError or OSError on failure."""
    base = os.path.abspath(base_path if base_path is not None else os.getcwd())
    full = os.path.normpath(os.path.join(base, path))
    if os.path.commonpath([base, full]) != base:
        raise ValueError(f"invalid path: {full}")
    with open(full, "rb") as handle:
        try:
            data = yaml.safe_load(handle.read())
        except yaml.YAMLError as exc:
            raise ValueError(f"failed to parse config: {exc}") from exc
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ValueError("failed to parse config: top level must be a mapping")
    port = data.get("port")
    if port is None:
        return Config()
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError("failed to parse config: port must be an integer")
    return Config(port=port)


def main(argv: Sequence[str] | None = None) -> int:
    """Start the HTTP server; return a non-zero status on failure."""
    parser = argparse.ArgumentParser(description="Serve the loan calculator.")
    parser.add_argument("--config", default="config.yml")
    parser.add_argument("--base-path", default=None)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        config = load_config(args.config, args.base_path)
    except OSError as exc:
        logger.error("failed to read config: %s", exc)
        return 1
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    app = create_app(Service(Cache()))
    logger.info("Server is running on :%d", config.port)
    try:
        app.run(host="0.0.0.0", port=config.port, threaded=True)
    except OSError as exc:
        logger.error("Failed to start server: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())