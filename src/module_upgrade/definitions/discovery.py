"""Model discovery services.

A discovery service returns the raw model definitions of a module.  The
upgrade core only depends on the ``ModelDiscoveryService`` Protocol; the
JSON implementation below reads definitions exported to files.

Layout read by ``JsonDefinitionDiscovery``::

    definitions/
        blog/
            post.json          {"table": "post", "primary": "id_post", ...}
            comments.json      [{...}, {...}]

Usage:
    from module_upgrade.definitions.discovery import JsonDefinitionDiscovery

    discovery = JsonDefinitionDiscovery("definitions")
    definitions = discovery.discover("blog")
"""

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from module_upgrade.definitions.models import RawModelDefinition
from module_upgrade.errors import DiscoveryError

logger = logging.getLogger(__name__)


class ModelDiscoveryService(Protocol):
    """Returns the raw model definitions of a module."""

    def discover(self, module: str) -> list[RawModelDefinition]:
        """Return the definitions of *module* (possibly empty)."""
        ...


class JsonDefinitionDiscovery:
    """Reads model definitions from ``<root>/<module>/**/*.json``.

    Each file holds one definition object or a list of them.  Files are
    visited in sorted path order.  A file that cannot be read or parsed
    is skipped with a warning and recorded in ``skipped``.  A malformed
    entry inside a readable file is returned with ``error`` set, so it
    fails on its own and its siblings are kept.

    Args:
        root: Directory holding one sub-directory per module.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self.skipped: list[tuple[Path, str]] = []

    def discover(self, module: str) -> list[RawModelDefinition]:
        """Load every definition of *module*.

        Raises:
            DiscoveryError: If the module directory does not exist.
        """
        module_dir = self._root / module
        if not module_dir.is_dir():
            raise DiscoveryError(f"Module definitions not found: {module_dir}")

        self.skipped = []
        definitions: list[RawModelDefinition] = []

        for path in sorted(module_dir.rglob("*.json")):
            try:
                definitions.extend(self._load_file(path, module_dir))
            except (OSError, ValueError) as e:
                logger.warning("Could not read definitions from %s: %s", path, e)
                self.skipped.append((path, str(e)))

        logger.debug("Discovered %d definitions for module %s", len(definitions), module)
        return definitions

    def _load_file(self, path: Path, module_dir: Path) -> list[RawModelDefinition]:
        data = json.loads(path.read_text())
        entries = data if isinstance(data, list) else [data]
        relative = path.relative_to(module_dir).as_posix()

        definitions = []
        for position, entry in enumerate(entries):
            source = relative if len(entries) == 1 else f"{relative}#{position}"
            definitions.append(self._load_entry(entry, source))
        return definitions

    def _load_entry(self, entry: object, source: str) -> RawModelDefinition:
        """Parse one entry; a malformed one is kept with its error for the translator."""
        if not isinstance(entry, dict):
            return RawModelDefinition(source=source, error="definition is not an object")
        try:
            return RawModelDefinition.from_definition(entry, source=source)
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning("Malformed definition %s: %s", source, e)
            table = entry.get("table")
            return RawModelDefinition(
                table=table if isinstance(table, str) else None,
                source=source,
                error=str(e),
            )
