"""
Failure log records.

A CubeFile keeps what is needed to replay a solve offline: the starting
facelet, the moves the solver played, the trial number and the outcome.
Records are written as JSON ``.cube`` files, and a text version of each is
appended to ``log.txt`` in the same directory.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

import numpy as np

from Facelet_to_Cube import FACELET_SHAPE, net_to_string

_LOGGER = logging.getLogger(__name__)

LOG_DIR = "log"
LOG_FILE = "log.txt"
CUBE_EXTENSION = ".cube"

# Trials write from several threads at once
_LOG_LOCK = threading.Lock()


@dataclass
class CubeFile:
    start_state: np.ndarray
    moves: List[str]
    trial_id: int = -1
    outcome: str = "FAILED"
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.start_state = np.asarray(self.start_state, dtype=int).reshape(FACELET_SHAPE)
        self.moves = list(self.moves)

    def to_facelet(self) -> np.ndarray:
        return self.start_state.copy()

    def to_dict(self) -> dict:
        return {
            "start_state": self.start_state.tolist(),
            "moves": self.moves,
            "trial_id": self.trial_id,
            "outcome": self.outcome,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, indent=2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "CubeFile":
        timestamp = data.get("timestamp")
        return cls(
            start_state=np.array(data["start_state"], dtype=int),
            moves=data.get("moves", []),
            trial_id=data.get("trial_id", -1),
            outcome=data.get("outcome", "FAILED"),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(),
        )

    @classmethod
    def from_json(cls, text: str) -> "CubeFile":
        return cls.from_dict(json.loads(text))

    @classmethod
    def load(cls, path: str) -> "CubeFile":
        with open(path, "r") as f:
            return cls.from_json(f.read())

    def save(self, path: str):
        with open(path, "w") as f:
            f.write(self.to_json())

    @property
    def filename(self) -> str:
        return (f"[{self.timestamp:%Y-%m-%d %H-%M-%S}] "
                f"test no{self.trial_id} {self.outcome}{CUBE_EXTENSION}")

    def __str__(self):
        return (f"Trial Number: {self.trial_id}  [{self.timestamp:%Y-%m-%d %H:%M:%S}]\n\n"
                f"{net_to_string(self.start_state)}\n"
                f"{' '.join(self.moves)}\n\n"
                f"Outcome: {self.outcome}\n"
                + "=" * 51 + "\n\n\n")


def write_log(record: CubeFile, log_dir: str = LOG_DIR) -> str:
    """
    Save a record as a .cube file and append it to the text log.

    Returns:
        Path of the .cube file
    """
    os.makedirs(log_dir, exist_ok=True)
    path = os.path.join(log_dir, record.filename)
    with _LOG_LOCK:
        record.save(path)
        with open(os.path.join(log_dir, LOG_FILE), "a") as f:
            f.write(str(record))
    _LOGGER.info("Logged trial %d (%s) to %s", record.trial_id, record.outcome, path)
    return path


def find_logs(trial_id: int, log_dir: str = LOG_DIR) -> List[str]:
    """Paths of the .cube files written for a trial number, oldest first."""
    if not os.path.isdir(log_dir):
        return []
    marker = f"test no{trial_id} "
    return sorted(os.path.join(log_dir, name) for name in os.listdir(log_dir)
                  if name.endswith(CUBE_EXTENSION) and marker in name)
