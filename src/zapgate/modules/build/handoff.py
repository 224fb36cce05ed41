"""JSON records persisted under ``<workspace>/.zapgate/`` between build steps."""

import json
import logging
from pathlib import Path

from zapgate.errors import HandoffMissingError
from zapgate.modules.launcher.executor import RemoteExecutor

from .models import HandoffRecord

logger = logging.getLogger(__name__)

STATE_DIR = ".zapgate"
LAUNCH_RECORD = "launch.json"
HANDOFF_RECORD = "handoff.json"


class HandoffStore:
    """
    ``launch.json`` is written by the pre-build step and consumed by the scan
    step; ``handoff.json`` is written by the scan step and consumed by the
    threshold step.
    """

    def __init__(self, workspace: Path, executor: RemoteExecutor):
        self.workspace = workspace
        self.executor = executor

    @property
    def state_dir(self) -> Path:
        return self.workspace / STATE_DIR

    def path_for(self, name: str) -> Path:
        return self.state_dir / name

    def write(self, name: str, record: HandoffRecord) -> Path:
        path = self.path_for(name)
        self.executor.make_dirs(path.parent)
        self.executor.write_bytes(path, json.dumps(record.to_dict(), indent=2).encode("utf-8"))
        logger.debug("wrote %s", path)
        return path

    def read(self, name: str) -> HandoffRecord:
        path = self.path_for(name)
        if not self.executor.exists(path):
            raise HandoffMissingError(f"No {name} record in {self.state_dir}")
        return HandoffRecord.from_dict(json.loads(self.executor.read_text(path)))

    def consume(self, name: str, build_id: str = "") -> HandoffRecord:
        """
        Read a record and remove it so it is used at most once.

        When ``build_id`` is given, a record stamped by any other build is
        rejected as stale.
        """
        record = self.read(name)
        self.executor.delete_file(self.path_for(name))
        if build_id and record.build_id != build_id:
            raise HandoffMissingError(
                f"{name} belongs to build [ {record.build_id or 'unknown'} ], not [ {build_id} ]"
            )
        return record

    def discard(self, name: str) -> None:
        if self.executor.exists(self.path_for(name)):
            logger.debug("discarding stale %s", name)
            self.executor.delete_file(self.path_for(name))

    def write_launch(self, record: HandoffRecord) -> Path:
        return self.write(LAUNCH_RECORD, record)

    def consume_launch(self, build_id: str = "") -> HandoffRecord:
        return self.consume(LAUNCH_RECORD, build_id)

    def write_handoff(self, record: HandoffRecord) -> Path:
        return self.write(HANDOFF_RECORD, record)

    def consume_handoff(self, build_id: str = "") -> HandoffRecord:
        return self.consume(HANDOFF_RECORD, build_id)
