from __future__ import annotations

"""
Local Sandbox Runtime.

Reference implementation of ``SandboxRuntime`` backed by a host directory.
The whole buffer is decoded and written to a staging directory before
anything appears under the mount point, so a rejected snapshot leaves the
mount point untouched. Processes run with the runtime root as working
directory, and a background probe reports "server ready" once a watched
port accepts connections.
"""

import logging
import os
import shutil
import socket
import subprocess
import tempfile
import threading
import time
from typing import List, Optional, Sequence, Tuple

from blitzpack.core.loader.runtime import (
    Buffer,
    OutputSink,
    SandboxProcess,
    SandboxRuntime,
    ServerReadyListener,
)
from blitzpack.core.snapshot.decoder import decode_snapshot, materialize_tree
from blitzpack.domain.constants import DEFAULT_SERVER_PORT
from blitzpack.domain.errors import MountFailure, SnapshotFormatError, SpawnFailure
from blitzpack.infra.fs import is_within

logger = logging.getLogger(__name__)

PROBE_HOST = "127.0.0.1"
PROBE_INTERVAL = 0.1


class LocalProcess(SandboxProcess):
    """``subprocess.Popen`` wrapper with merged stdout/stderr."""

    def __init__(self, popen: "subprocess.Popen[str]"):
        self._popen = popen
        self._pump: Optional[threading.Thread] = None

    @property
    def pid(self) -> int:
        return self._popen.pid

    def pipe_output(self, sink: OutputSink) -> None:
        stream = self._popen.stdout
        if stream is None or self._pump is not None:
            return

        def pump() -> None:
            for line in stream:
                sink(line.rstrip("\n"))

        self._pump = threading.Thread(target=pump, name="SandboxOutput", daemon=True)
        self._pump.start()

    def wait(self, timeout: Optional[float] = None) -> int:
        code = self._popen.wait(timeout=timeout)
        if self._pump is not None:
            self._pump.join(timeout=1.0)
        return code

    def kill(self) -> None:
        if self._popen.poll() is None:
            self._popen.kill()
            self._popen.wait()

    @property
    def exit_code(self) -> Optional[int]:
        return self._popen.poll()


class LocalSandbox(SandboxRuntime):
    """
    Sandbox whose virtual filesystem is a host directory.

    Args:
        root: Host directory acting as the runtime's filesystem root.
        probe_ports: Ports watched for "server ready" after each spawn.
        ready_timeout: Seconds a probe keeps trying before giving up.
    """

    def __init__(
            self,
            root: str,
            *,
            probe_ports: Sequence[int] = (DEFAULT_SERVER_PORT,),
            ready_timeout: float = 60.0,
    ):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)
        self.probe_ports: Tuple[int, ...] = tuple(probe_ports)
        self.ready_timeout = ready_timeout
        self._listeners: List[ServerReadyListener] = []
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # FILESYSTEM
    # -------------------------------------------------------------------------

    def resolve(self, path: str) -> str:
        """Map a runtime path to the host, refusing paths outside the root."""
        target = os.path.abspath(os.path.join(self.root, path.lstrip("/")))
        if not is_within(target, self.root):
            raise ValueError(f"Path escapes the sandbox root: {path}")
        return target

    def mkdir(self, path: str) -> None:
        try:
            os.makedirs(self.resolve(path), exist_ok=True)
        except (ValueError, OSError) as e:
            raise MountFailure(f"Cannot create mount point '{path}': {e}") from e

    def mount(self, snapshot: Buffer, mount_point: str) -> None:
        try:
            target = self.resolve(mount_point)
        except ValueError as e:
            raise MountFailure(str(e)) from e
        if not os.path.isdir(target):
            raise MountFailure(f"Mount point does not exist: {mount_point}")

        try:
            decoded = decode_snapshot(snapshot)
        except SnapshotFormatError as e:
            raise MountFailure(f"Rejected snapshot: {e}") from e

        staging = tempfile.mkdtemp(prefix=".mount-", dir=self.root)
        try:
            dirs, files = materialize_tree(decoded, staging)
            for name in sorted(os.listdir(staging)):
                dest = os.path.join(target, name)
                _remove_path(dest)
                os.replace(os.path.join(staging, name), dest)
        except OSError as e:
            raise MountFailure(f"Mount at '{mount_point}' failed: {e}") from e
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.info(f"Mounted {dirs} directories and {files} files at '{mount_point}'.")

    # -------------------------------------------------------------------------
    # PROCESSES & EVENTS
    # -------------------------------------------------------------------------

    def spawn(self, command: str, args: Sequence[str]) -> LocalProcess:
        argv = [command, *args]
        logger.debug(f"Spawning {argv} in {self.root}")
        try:
            popen = subprocess.Popen(
                argv,
                cwd=self.root,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise SpawnFailure(f"Cannot spawn '{command}': {e}") from e

        process = LocalProcess(popen)
        for port in self.probe_ports:
            threading.Thread(
                target=self._probe,
                args=(process, port),
                name=f"PortProbe-{port}",
                daemon=True,
            ).start()
        return process

    def on_server_ready(self, listener: ServerReadyListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def emit_server_ready(self, port: int, url: str) -> None:
        """Deliver a "server ready" event to every registered listener."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(port, url)

    def _probe(self, process: LocalProcess, port: int) -> None:
        deadline = time.monotonic() + self.ready_timeout
        while time.monotonic() < deadline and process.exit_code is None:
            if _port_open(PROBE_HOST, port):
                self.emit_server_ready(port, f"http://localhost:{port}")
                return
            time.sleep(PROBE_INTERVAL)
        logger.debug(f"Port probe on {port} stopped without a listening server.")


def _port_open(host: str, port: int) -> bool:
    try:
        with socket.create_connection((host, port), timeout=PROBE_INTERVAL):
            return True
    except OSError:
        return False


def _remove_path(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)
