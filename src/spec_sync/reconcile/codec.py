"""YAML/JSON reading and writing of spec documents.

Key design choices:

* **Safe loading** -- YAML is parsed with a dedicated ``SafeLoader``
  subclass so no arbitrary objects can be constructed.  The subclass
  keeps timestamps as plain strings, so every parsed value is a JSON
  scalar.
* **String keys** -- mapping keys are normalised to strings (``200`` ->
  ``"200"``, ``true`` -> ``"true"``) so YAML and JSON inputs of the same
  document diff identically.
* **Order preserving** -- key insertion order is kept on parse and on
  serialise (``sort_keys=False``); diff enumeration and document hashing
  depend on it.
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from pathlib import Path
from typing import Any

import yaml

from .differ import check_root

logger = logging.getLogger(__name__)

YAML = "yaml"
JSON = "json"
_YAML_SUFFIXES = (".yaml", ".yml")


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as strings.

    A dedicated subclass so the global ``yaml.SafeLoader`` is never
    modified.
    """


DocumentLoader.add_constructor(
    "tag:yaml.org,2002:timestamp", yaml.SafeLoader.construct_yaml_str
)


class DocumentDumper(yaml.SafeDumper):
    """SafeDumper that never emits anchors/aliases for repeated values."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def format_for(path: Path) -> str:
    """Return ``"yaml"`` or ``"json"`` based on *path*'s suffix."""
    return YAML if path.suffix.lower() in _YAML_SUFFIXES else JSON


def _normalise_keys(obj: Any) -> Any:
    """Walk a nested dict/list and turn every mapping key into a string."""
    if isinstance(obj, dict):
        return {_key_text(k): _normalise_keys(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_normalise_keys(item) for item in obj]
    return obj


def _key_text(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool) or key is None:
        return json.dumps(key)
    return str(key)


class DocumentCodec:
    """Parse and serialise documents, and read/write them on disk."""

    def parse(self, text: str, fmt: str = YAML) -> Any:
        """Parse *text* into a document.

        Args:
            text: Serialised document.
            fmt: ``"yaml"`` or ``"json"``.  YAML also accepts JSON input.

        Returns:
            The document tree (a dict or a list).

        Raises:
            ValidationError: If the root is not a mapping or a list.
            yaml.YAMLError / json.JSONDecodeError: If *text* is malformed.
        """
        if fmt == JSON:
            data = json.loads(text)
        else:
            data = yaml.load(text, Loader=DocumentLoader)  # noqa: S506
        check_root(data)
        return _normalise_keys(data)

    def serialize(self, document: Any, fmt: str = YAML) -> str:
        """Serialise *document*, preserving key order.  Ends with a newline."""
        if fmt == JSON:
            return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        text = yaml.dump(
            document,
            Dumper=DocumentDumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=float("inf"),
        )
        return text if text.endswith("\n") else text + "\n"

    def read(self, path: Path) -> Any:
        """Read and parse the document at *path*."""
        text = Path(path).read_text(encoding="utf-8")
        return self.parse(text, format_for(Path(path)))

    def write(self, document: Any, path: Path) -> None:
        """Serialise *document* to *path* in the format its suffix implies."""
        path = Path(path)
        path.write_text(self.serialize(document, format_for(path)), encoding="utf-8")
        logger.debug("Wrote %s", path)

    def backup(self, path: Path) -> Path:
        """Copy *path* to ``<path>.backup.<epoch-ms>`` and return the copy."""
        path = Path(path)
        target = path.with_name(f"{path.name}.backup.{int(time.time() * 1000)}")
        shutil.copyfile(path, target)
        logger.info("Backup created: %s", target)
        return target
