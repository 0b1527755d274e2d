"""Blob Store - Local disk persistence for photo bytes.

Photos are written under a root directory at the path given by their key.
"""

import logging
import os
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


def _default_root() -> str:
    data_dir = os.environ.get("DATA_DIR", "data")
    return os.path.join(data_dir, "custody-photos")


@dataclass
class BlobStoreConfig:
    """Configuration for the blob store.

    Attributes:
        root: Directory that keys are resolved against
    """

    root: str = field(default_factory=_default_root)


class LocalBlobStore:
    """Stores photo bytes as files under a root directory."""

    def __init__(self, config: BlobStoreConfig | None = None) -> None:
        self.config = config or BlobStoreConfig()

    def path_for(self, key: str) -> str:
        """Resolve a key to a file path inside the root.

        Raises:
            ValueError: If the key would escape the root directory
        """
        root = os.path.abspath(self.config.root)
        path = os.path.abspath(os.path.join(root, key))
        if os.path.commonpath([root, path]) != root or path == root:
            raise ValueError(f"Invalid blob key: {key}")
        return path

    def exists(self, key: str) -> bool:
        """Check whether a blob was written under key."""
        try:
            return os.path.isfile(self.path_for(key))
        except ValueError:
            return False

    def put(self, key: str, content: bytes) -> bool:
        """Write content under key. Existing keys are never overwritten.

        Args:
            key: Storage key
            content: File bytes

        Returns:
            True if the file was written
        """
        logger.debug("Writing blob: %s (%d bytes)", key, len(content))
        try:
            path = self.path_for(key)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "xb") as f:
                f.write(content)
            return True
        except (OSError, ValueError) as e:
            logger.error("Failed to write blob %s: %s", key, str(e))
            return False
