"""
Receipt Recorder: write-once JSON audit records of completed ledger actions
"""

import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

from .config import records_dir
from .errors import PersistenceWarning
from .types import ActionReceipt

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 1000


class ReceiptRecorder:
    """Writes <action>-record-<unixMillis>.json files, never overwriting an existing one"""

    def __init__(self, directory: Optional[Union[str, Path]] = None,
                 clock: Callable[[], float] = time.time):
        self.directory = Path(directory if directory is not None else records_dir())
        self._clock = clock

    def record(self, receipt: ActionReceipt) -> Path:
        """
        Persist the receipt.

        Raises PersistenceWarning on any filesystem error; the ledger action it
        describes has already happened and is not affected.
        """
        payload = json.dumps(receipt.to_dict(), indent=2, ensure_ascii=False)
        millis = int(self._clock() * 1000)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for offset in range(MAX_NAME_ATTEMPTS):
                path = self.directory / f"{receipt.action}-record-{millis + offset}.json"
                try:
                    with open(path, "x", encoding="utf-8") as f:
                        f.write(payload)
                        f.write("\n")
                except FileExistsError:
                    continue
                logger.info(f"Receipt written to {path}")
                return path
        except OSError as e:
            raise PersistenceWarning(f"Could not write {receipt.action} receipt: {e}")

        raise PersistenceWarning(
            f"Could not find a free file name for the {receipt.action} receipt in {self.directory}"
        )
