"""Backend file service implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import TYPE_CHECKING, Any, Literal

from workspace_sync.log import get_logger
from workspace_sync.models import WireModel


if TYPE_CHECKING:
    from typing import TextIO

    from workspace_sync.models import DidUpdateFileSystemParams


logger = get_logger(__name__)

DID_UPDATE_FILE_SYSTEM = "file/didUpdateFileSystem"


class JsonRpcNotification(WireModel):
    """JSON-RPC 2.0 notification envelope (no id, no response)."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any]


@dataclass
class JsonRpcFileService:
    """Writes newline-delimited JSON-RPC notifications to a text stream.

    Example:
        ```python
        service = JsonRpcFileService(process.stdin)
        synchronizer = FileSystemSynchronizer(service)
        ```
    """

    stream: TextIO
    """Stream connected to the backend process."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def send_notification(self, method: str, params: dict[str, Any]) -> None:
        message = JsonRpcNotification(method=method, params=params)
        line = message.model_dump_json(by_alias=True)
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def did_update_file_system(self, params: DidUpdateFileSystemParams) -> None:
        dct = params.model_dump(mode="json", by_alias=True)
        self.send_notification(DID_UPDATE_FILE_SYSTEM, dct)


class LoggingFileService:
    """File service that only logs the batches it receives.

    Useful for dry runs without a backend.
    """

    def did_update_file_system(self, params: DidUpdateFileSystemParams) -> None:
        logger.info(
            "File system update",
            removed=params.removed_files,
            added_or_changed=[f.uri for f in params.added_or_changed_files],
        )
