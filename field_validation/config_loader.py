"""Rule document loading with URI fetching and caching."""

import hashlib
import importlib
import logging
import urllib.parse
from pathlib import Path
from typing import Any, Dict, Optional

import requests
import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from .errors import ConfigError
from .registry import RuleRegistry

logger = logging.getLogger(__name__)

# Structure of a rule document; rule semantics are checked by RuleLoader
_REFERENCE_MAP = {
    "type": "object",
    "additionalProperties": {
        "type": "string",
        "pattern": r"^[A-Za-z_][\w.]*[:.][A-Za-z_]\w*$",
    },
}

CONFIG_SCHEMA = {
    "type": "object",
    "required": ["fields"],
    "additionalProperties": False,
    "properties": {
        "stop_on_first_error": {"type": "boolean"},
        "functions": _REFERENCE_MAP,
        "classes": _REFERENCE_MAP,
        "fields": {
            "type": "object",
            "additionalProperties": {
                "anyOf": [
                    {"type": "string"},
                    {"type": "object"},
                    {
                        "type": "array",
                        "items": {"anyOf": [{"type": "string"}, {"type": "object"}]},
                    },
                ]
            },
        },
    },
}


class ConfigLoader:
    """Loads a YAML rule document and builds registries and validators from it."""

    # Hardcoded cache directory for remote rule documents
    CACHE_DIR = Path.home() / ".cache" / "field-validation-lib"
    REQUEST_TIMEOUT = 10

    def __init__(self, uri: str, cache_dir: Optional[Path] = None):
        """
        Load and check a rule document.

        Args:
            uri: Relative or absolute path, file:// URI, or http(s):// URI
            cache_dir: Override for the remote document cache

        Raises:
            ConfigError: If the document can't be loaded or is malformed
        """
        self.uri = uri
        self.cache_dir = Path(cache_dir) if cache_dir else self.CACHE_DIR
        self.config = self._load_config_from_uri(uri)
        self._check_structure(self.config)
        logger.info(
            "Loaded rule document %s (%d fields)", uri, len(self.config["fields"])
        )

    @property
    def fields(self) -> Dict[str, Any]:
        return self.config["fields"]

    @property
    def stop_on_first_error(self) -> bool:
        return self.config.get("stop_on_first_error", True)

    def build_registry(self) -> RuleRegistry:
        """
        Create a registry holding the document's functions and classes.

        Each reference is imported explicitly from its "module:attr" path.
        """
        functions = {
            name: self._import_reference(reference)
            for name, reference in self.config.get("functions", {}).items()
        }
        classes = {
            name: self._import_reference(reference)
            for name, reference in self.config.get("classes", {}).items()
        }
        return RuleRegistry(functions=functions, classes=classes)

    def build_validator(self):
        """Create a Validator for the document's fields."""
        from .api import Validator

        return Validator(
            self.fields,
            registry=self.build_registry(),
            stop_on_first_error=self.stop_on_first_error,
        )

    def _check_structure(self, config: Any) -> None:
        first = best_match(Draft7Validator(CONFIG_SCHEMA).iter_errors(config))
        if first is not None:
            location = " -> ".join(str(p) for p in first.path) if first.path else "root"
            raise ConfigError(
                f"Invalid rule document {self.uri} at {location}: {first.message}"
            )

    def _import_reference(self, reference: str) -> Any:
        """Import "package.module:attr" (or "package.module.attr")."""
        if ":" in reference:
            module_name, _, attr = reference.partition(":")
        else:
            module_name, _, attr = reference.rpartition(".")
        try:
            module = importlib.import_module(module_name)
            return getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise ConfigError(f"Cannot import '{reference}': {e}") from e

    def _load_yaml(self, path: Path) -> Any:
        try:
            with open(path) as f:
                return yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read rule document {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    def _load_config_from_uri(self, uri: str) -> Any:
        """
        Load document from URI (with caching for remote URIs).

        Supports:
        - Relative or absolute paths - rules/person.yaml
        - file:// - Local filesystem
        - https:// / http:// - Remote, cached by URI hash
        """
        parsed = urllib.parse.urlparse(uri)

        if not parsed.scheme or len(parsed.scheme) == 1:
            # Plain path (single letter scheme is a Windows drive)
            return self._load_yaml(Path(uri))

        if parsed.scheme == "file":
            return self._load_yaml(Path(urllib.parse.unquote(parsed.path)))

        if parsed.scheme in ("http", "https"):
            cache_key = hashlib.sha256(uri.encode()).hexdigest()
            cache_path = self.cache_dir / f"rules_{cache_key}.yaml"

            if cache_path.exists():
                logger.debug("Using cached rule document %s", cache_path)
                return self._load_yaml(cache_path)

            content = self._fetch_uri(uri)
            try:
                config = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML from {uri}: {e}") from e
            # Only well-formed documents are cached
            self._check_structure(config)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(content)
            return config

        raise ConfigError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

    def _fetch_uri(self, uri: str) -> str:
        """Fetch content from HTTP/HTTPS URI."""
        try:
            response = requests.get(uri, timeout=self.REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ConfigError(f"Failed to fetch rule document from {uri}: {e}") from e
        return response.text
