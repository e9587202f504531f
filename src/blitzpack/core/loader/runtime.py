from __future__ import annotations

"""
Sandboxed Runtime Interface.

Describes what the client loader needs from an isolated execution
environment: a virtual filesystem that accepts one atomic mount of a
snapshot buffer, a process model, and a "server ready" notification.
Also provides the content frame the loader points at the served URL.
"""

import logging
import webbrowser
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]
ServerReadyListener = Callable[[int, str], None]
OutputSink = Callable[[str], None]


class SandboxProcess(ABC):
    """A process spawned inside the sandboxed runtime."""

    @abstractmethod
    def pipe_output(self, sink: OutputSink) -> None:
        """Forward every output line to ``sink`` until the process ends."""

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until the process exits and return its exit code."""

    @abstractmethod
    def kill(self) -> None:
        """Terminate the process."""

    @property
    @abstractmethod
    def exit_code(self) -> Optional[int]:
        """Exit code, or None while running."""


class SandboxRuntime(ABC):
    """
    Isolated runtime with its own filesystem and process model.

    Implementations raise ``MountFailure`` and ``SpawnFailure`` for rejected
    mounts and spawns.
    """

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create a directory in the virtual filesystem. Raises MountFailure."""

    @abstractmethod
    def mount(self, snapshot: Buffer, mount_point: str) -> None:
        """Materialize a whole snapshot buffer at ``mount_point`` in one step."""

    @abstractmethod
    def spawn(self, command: str, args: Sequence[str]) -> SandboxProcess:
        """Start a process inside the runtime."""

    @abstractmethod
    def on_server_ready(self, listener: ServerReadyListener) -> None:
        """Register a callback receiving ``(port, url)`` when a server listens."""


class ContentFrame:
    """
    The visible frame of the host page. Holds the URL it displays.
    """

    def __init__(self) -> None:
        self.src: Optional[str] = None

    def attach(self, url: str) -> None:
        self.src = url
        logger.info(f"Content frame attached to {url}")


class BrowserFrame(ContentFrame):
    """Content frame that also opens the URL in the system browser."""

    def attach(self, url: str) -> None:
        super().attach(url)
        webbrowser.open(url)
