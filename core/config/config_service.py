"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"

ENV_PREFIX = "QRSTAMP_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Paths": {
        "output_dir": "output",
        "scratch_dir": "img",
        "badge_image": "qr_bg.png",
    },
    "Stamp": {
        "verification_domain": "privy.id",
        "qr_pixels": "125",
        "footprint": "75",
        "token_size": "70",
        "badge_size": "15",
    },
    "Metadata": {
        "title": "Metadata Baru",
        "author": "Librantara",
        "subject": "Example Metadata",
        "creator": "Librantara",
        "producer": "MajuTumbuhBersama",
        "copyright": "Copyright Example",
    },
    "Database": {
        "logging": (PROJECT_ROOT / "databases" / "logs.db").as_posix(),
    },
    "Logging": {
        "audit_enabled": "true",
        "level": "INFO",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class PathsConfig:
    output_dir: Path = Path("output")
    scratch_dir: Path = Path("img")
    badge_image: Path = Path("qr_bg.png")


@dataclass
class StampConfig:
    verification_domain: str = "privy.id"
    qr_pixels: int = 125
    footprint: float = 75.0
    token_size: float = 70.0
    badge_size: float = 15.0


@dataclass
class MetadataConfig:
    title: str = ""
    author: str = ""
    subject: str = ""
    creator: str = ""
    producer: str = ""
    copyright: str = ""


@dataclass
class DatabaseConfig:
    logging: Path = Path("databases/logs.db")


@dataclass
class LoggingConfig:
    audit_enabled: bool = True
    level: str = "INFO"


@dataclass
class AppConfig:
    paths: PathsConfig
    stamp: StampConfig
    metadata: MetadataConfig
    database: DatabaseConfig
    logging: LoggingConfig


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    # dataclass field types are strings under postponed annotations
    name = typ if isinstance(typ, str) else getattr(typ, "__name__", str(typ))
    if name == "Path":
        return Path(str(value)).expanduser()
    if name == "bool":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if name == "int":
        return int(value)
    if name == "float":
        return float(value)
    return str(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays() -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "QRStamp" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "qrstamp" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(self, *, use_files: bool = True) -> None:
        self._lock = RLock()
        self._use_files = use_files
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._use_files and DEFAULTS_INI.exists():
                cp = configparser.ConfigParser()
                cp.read(DEFAULTS_INI, encoding="utf-8")
                _apply(merged, _cp_to_dict(cp), "defaults.ini", str(DEFAULTS_INI), sources)

            # Layer 2: environment variables
            env = _env_overlays()
            _apply(merged, env, "env", "os.environ", sources)

            # Layer 3: machine config
            if self._use_files and MACHINE_INI.exists():
                cp = configparser.ConfigParser()
                cp.read(MACHINE_INI, encoding="utf-8")
                _apply(merged, _cp_to_dict(cp), "machine", str(MACHINE_INI), sources)

            # Layer 4: user overrides
            user_ini = _user_config_path()
            if self._use_files and user_ini.exists():
                cp = configparser.ConfigParser()
                cp.read(user_ini, encoding="utf-8")
                _apply(merged, _cp_to_dict(cp), "user", str(user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.paths = _build_dataclass(PathsConfig, merged.get("Paths", {}))
            self.stamp = _build_dataclass(StampConfig, merged.get("Stamp", {}))
            self.metadata = _build_dataclass(MetadataConfig, merged.get("Metadata", {}))
            self.database = _build_dataclass(DatabaseConfig, merged.get("Database", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))

    def app_config(self) -> AppConfig:
        """Snapshot of the merged configuration as one typed object."""
        with self._lock:
            return AppConfig(
                paths=self.paths,
                stamp=self.stamp,
                metadata=self.metadata,
                database=self.database,
                logging=self.logging,
            )

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# Global singleton
config_service = ConfigService()
