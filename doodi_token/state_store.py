"""
State Store: the single JSON file describing the current token
File I/O happens only in load() and save(); the record itself is passed around explicitly
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .config import token_info_path
from .errors import ConfigMissing, ValidationError
from .types import TokenRecord

logger = logging.getLogger(__name__)


class StateStore:
    """Reads and atomically rewrites doodi-token-info.json"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path if path is not None else token_info_path())

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> TokenRecord:
        if not self.exists():
            raise ConfigMissing(f"Token info file not found: {self.path}. Please create a token first.")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Token info file {self.path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ValidationError(f"Token info file {self.path} must contain a JSON object")

        record = TokenRecord.from_dict(data)
        logger.debug(f"Loaded token record {record.symbol} ({record.mint_address}) from {self.path}")
        return record

    def save(self, record: TokenRecord) -> Path:
        """Overwrite the state file; readers see either the old or the new content"""
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"Token record saved to {self.path}")
        return self.path
