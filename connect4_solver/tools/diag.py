from __future__ import annotations

import copy
import logging
import os
import pathlib
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import tomli

from ..logging_setup import get_log_path

CONFIG_HOME = pathlib.Path(os.path.expanduser("~/.connect4_solver"))
CONFIG_PATH = CONFIG_HOME / "config.toml"
DEFAULTS_PATH = pathlib.Path(__file__).resolve().parents[1] / "config" / "defaults.toml"
CENTRAL_LOG_PATH = get_log_path()


@dataclass
class InitResult:
    config_created: bool


def ensure_config() -> bool:
    CONFIG_HOME.mkdir(parents=True, exist_ok=True)
    if not CONFIG_PATH.exists():
        CONFIG_PATH.write_text(DEFAULTS_PATH.read_text(encoding="utf-8"), encoding="utf-8")
        return True
    return False


def install_and_init() -> InitResult:
    cfg_new = ensure_config()
    if cfg_new:
        logging.getLogger(__name__).info("Initialised configuration at %s", CONFIG_PATH)
    return InitResult(cfg_new)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_defaults() -> Dict[str, Any]:
    with open(DEFAULTS_PATH, "rb") as f:
        return tomli.load(f)


def load_config(config_path: Optional[Union[str, pathlib.Path]] = None) -> Dict[str, Any]:
    """Read a TOML config and merge it over the packaged defaults.

    Without a path the user config is used when it exists. An explicit path
    that cannot be read or parsed raises.
    """
    defaults = load_defaults()
    if config_path is None:
        if not CONFIG_PATH.exists():
            return defaults
        config_path = CONFIG_PATH
    with open(config_path, "rb") as f:
        user = tomli.load(f)
    return _merge(defaults, user)


def main() -> None:
    import argparse
    import datetime as dt
    import zipfile

    parser = argparse.ArgumentParser(prog="connect4-diag")
    parser.add_argument("--bundle", required=True)
    parser.add_argument("--log", default=str(CENTRAL_LOG_PATH), help="Log file to include")
    args = parser.parse_args()

    install_and_init()

    bundle_path = pathlib.Path(args.bundle)
    with zipfile.ZipFile(bundle_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr("config.toml", CONFIG_PATH.read_text(encoding="utf-8"))
        central_log = pathlib.Path(args.log)
        if central_log.exists():
            z.write(central_log, arcname=central_log.name)
        z.writestr("env.txt", f"python={sys.version}\nplatform={sys.platform}\n")
        z.writestr("timestamp.txt", dt.datetime.now(dt.timezone.utc).isoformat())
    logging.getLogger(__name__).info("Diagnostics bundle written to %s", bundle_path)
