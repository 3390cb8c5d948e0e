"""Persistence of documents and configuration."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from send2trash import send2trash

from tocsync.errors import (
    ConfigError,
    DiscardError,
    DocumentReadError,
    DocumentWriteError,
)
from tocsync.models.components import SyncConfig, SyncResult
from tocsync.toc.generator import TOCGenerator

CONFIG_FILENAME = ".tocsync.yaml"


class DocumentStore:
    """Read a markdown file and replace it, trashing the previous version."""

    def __init__(self, path: str | Path, use_trash: bool = True):
        """Initialize the document store.

        Args:
            path: Path to the markdown file.
            use_trash: Move the previous version to the platform trash before
                writing. When False the file is overwritten in place.
        """
        self.path = Path(path)
        self.use_trash = use_trash

    def read(self) -> str:
        """Read the whole document.

        Returns:
            The document text.
        """
        try:
            # newline="" keeps \r\n terminators intact
            with self.path.open(encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(self.path, e) from e

    def replace(self, text: str) -> None:
        """Replace the document with ``text``.

        The previous version is moved to the trash first; if that fails the
        document is not written.
        """
        if self.use_trash and self.path.exists():
            self.discard()

        try:
            with self.path.open("w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise DocumentWriteError(self.path, e) from e

    def discard(self) -> None:
        """Move the current file to the platform trash."""
        try:
            send2trash(str(self.path))
        except OSError as e:
            raise DiscardError(self.path, e) from e


def sync_file(
    path: str | Path,
    config: SyncConfig | None = None,
    use_trash: bool = True,
    dry_run: bool = False,
) -> SyncResult:
    """Synchronize the TOC of a markdown file in place.

    The file is read in full before anything else happens, and is only
    replaced when its text actually changes.

    Args:
        path: Markdown file to update.
        config: Synchronization settings.
        use_trash: Trash the previous version before writing.
        dry_run: Compute the result without touching the file.

    Returns:
        The synchronization result.
    """
    store = DocumentStore(path, use_trash=use_trash)
    result = TOCGenerator(config).sync(store.read())

    if result.changed and not dry_run:
        store.replace(result.text)

    return result


def strip_file(
    path: str | Path,
    config: SyncConfig | None = None,
    use_trash: bool = True,
) -> bool:
    """Remove the TOC block from a markdown file.

    Returns:
        True if the file was modified.
    """
    store = DocumentStore(path, use_trash=use_trash)
    text = store.read()
    stripped = TOCGenerator(config).strip(text)

    if stripped == text:
        return False

    store.replace(stripped)
    return True


class ConfigManager:
    """Load and save the tocsync configuration file."""

    def __init__(self, config_path: str | Path = CONFIG_FILENAME):
        """Initialize the configuration manager.

        Args:
            config_path: Path of the YAML configuration file.
        """
        self.config_path = Path(config_path)

    def exists(self) -> bool:
        return self.config_path.exists()

    def load(self, overrides: dict[str, Any] | None = None) -> SyncConfig:
        """Load the configuration, falling back to defaults.

        Args:
            overrides: Values taking precedence over the file, e.g. from
                command-line options. ``None`` values are ignored.

        Returns:
            Validated configuration.
        """
        data = {}
        if self.config_path.exists():
            try:
                with self.config_path.open(encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e
            except (OSError, UnicodeDecodeError) as e:
                reason = getattr(e, "strerror", None) or e
                raise ConfigError(f"Could not read {self.config_path}: {reason}") from e

            if not isinstance(raw, dict):
                raise ConfigError(f"{self.config_path} must contain a mapping")
            data = raw.get("toc") or {}
            if not isinstance(data, dict):
                raise ConfigError(f"'toc' in {self.config_path} must be a mapping")

        if overrides:
            data = {**data, **{k: v for k, v in overrides.items() if v is not None}}

        try:
            return SyncConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def save(self, config: SyncConfig) -> None:
        """Write ``config`` to the configuration file."""
        data = {
            "version": "1.0",
            "toc": config.model_dump(mode="json"),
        }

        try:
            with self.config_path.open("w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Could not write {self.config_path}: {e.strerror or e}") from e
