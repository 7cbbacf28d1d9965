import os
from pathlib import Path
from reviewdelta.utils.io_utils import load_json


# cache for arbitrary config files
_CONFIG_CACHE: dict[str, dict] = {}

CONFIG_DIR = Path(__file__).resolve().parent
# a directory outside the installed package holding crawler.json / configs.json
CONFIG_DIR_ENV = "REVIEWDELTA_CONFIG_DIR"


def _candidates(name: str) -> list[Path]:
    paths = []
    user_dir = os.environ.get(CONFIG_DIR_ENV)
    if user_dir:
        paths.append(Path(user_dir) / name)
    paths.append(CONFIG_DIR / name)
    paths.append(CONFIG_DIR / f"{name}.example")
    return paths


def load_config(name: str) -> dict:
    """Load a JSON config by file name.

    Lookup order: $REVIEWDELTA_CONFIG_DIR/<name>, the package's own
    <name>, then the shipped <name>.example. Missing everywhere gives {}.

    Examples:
        load_config("configs.json")
        load_config("crawler.json")
    """
    if name in _CONFIG_CACHE:
        return _CONFIG_CACHE[name]

    data = {}
    for path in _candidates(name):
        if path.exists():
            data = load_json(path)
            break

    _CONFIG_CACHE[name] = data
    return data


def config_section(name: str, *keys: str) -> dict:
    """
    Nested section of a config file, e.g.
        config_section("crawler.json", "providers", "google_maps", "reviews")
    Any missing (or non-object) level gives {}.
    """
    section = load_config(name)
    for key in keys:
        section = section.get(key) if isinstance(section, dict) else None
        if not isinstance(section, dict):
            return {}
    return section


def clear_config_cache() -> None:
    _CONFIG_CACHE.clear()
