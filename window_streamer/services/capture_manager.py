"""Capture process management for window streams using ffmpeg."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import Callable
from types import TracebackType

import psutil

from window_streamer.config import StreamerConfig
from window_streamer.exceptions import LaunchError
from window_streamer.models import WindowGeometry


logger = logging.getLogger(__name__)

# ffmpeg rewrites its progress line with bare carriage returns
_LINE_SPLIT = re.compile(rb"\r\n|\r|\n")
_STDERR_READ_SIZE = 4096

# Boundary the mpjpeg muxer writes unless told otherwise
MPJPEG_BOUNDARY = "ffmpeg"


def _kill_children(pid: int) -> None:
    """Kill all descendants of a process.

    Parameters
    ----------
    pid : int
        Parent process ID.
    """
    try:
        children = psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass


async def _discard(stream: asyncio.StreamReader) -> None:
    """Read a pipe to EOF so a paused transport can see the close."""
    try:
        while await stream.read(_STDERR_READ_SIZE * 16):
            pass
    except Exception as e:
        logger.debug("Discarding output ended: %s", e)


async def drain_stderr(stream: asyncio.StreamReader, pid: int) -> None:
    """Log a process's stderr line by line until EOF.

    Runs detached from the relay; nothing ever awaits its result.

    Parameters
    ----------
    stream : asyncio.StreamReader
        The process's stderr pipe.
    pid : int
        Process ID, used to tag log lines.
    """
    pending = b""
    try:
        while True:
            chunk = await stream.read(_STDERR_READ_SIZE)
            if not chunk:
                break
            *lines, pending = _LINE_SPLIT.split(pending + chunk)
            for line in lines:
                if line.strip():
                    logger.info("ffmpeg[%d]: %s", pid, line.decode(errors="replace").rstrip())
        if pending.strip():
            logger.info("ffmpeg[%d]: %s", pid, pending.decode(errors="replace").rstrip())
    except Exception as e:
        logger.debug("stderr drain for PID %d ended: %s", pid, e)


class CaptureSession:
    """One running encoder bound to one stream request.

    Use as an async context manager so the process is killed and reaped on
    every exit path::

        async with await manager.start(geometry, display) as session:
            await relay(session, sink)

    Parameters
    ----------
    process : asyncio.subprocess.Process
        The encoder process, started with piped stdout and stderr.
    geometry : WindowGeometry
        Screen rectangle being captured.
    command : list[str]
        Command line the process was started with.
    stop_timeout : float
        Seconds to wait for the killed process to exit.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        geometry: WindowGeometry,
        command: list[str],
        stop_timeout: float = 5.0,
    ) -> None:
        if process.stdout is None or process.stderr is None:
            raise ValueError("Capture process must be started with piped stdout and stderr")
        self.process = process
        self.geometry = geometry
        self.command = command
        self.stop_timeout = stop_timeout
        self.stdout: asyncio.StreamReader = process.stdout
        self._stderr_task = asyncio.create_task(drain_stderr(process.stderr, process.pid))
        self._stop_callbacks: list[Callable[[], None]] = []
        self._stopped = False

    @property
    def pid(self) -> int:
        """Encoder process ID."""
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        """Exit status once the process has been reaped."""
        return self.process.returncode

    @property
    def stopped(self) -> bool:
        """Whether stop() has run."""
        return self._stopped

    def add_stop_callback(self, callback: Callable[[], None]) -> None:
        """Register a callable to run once the session has stopped."""
        self._stop_callbacks.append(callback)

    async def read(self, size: int) -> bytes:
        """Read up to ``size`` encoded bytes; ``b""`` means end of stream."""
        return await self.stdout.read(size)

    async def stop(self) -> None:
        """Kill and reap the encoder.

        Idempotent, safe after the process has exited on its own, and never
        raises. Waiting is bounded by ``stop_timeout``.
        """
        if self._stopped:
            return
        self._stopped = True

        try:
            if self.process.returncode is None:
                logger.info("Killing capture process %d", self.pid)
                _kill_children(self.pid)
                try:
                    self.process.kill()
                except ProcessLookupError:
                    pass

            try:
                await asyncio.wait_for(
                    asyncio.gather(self.process.wait(), _discard(self.stdout)),
                    timeout=self.stop_timeout,
                )
                logger.info(
                    "Capture process %d exited with status %s", self.pid, self.process.returncode
                )
            except asyncio.TimeoutError:
                logger.error("Capture process %d could not be reaped", self.pid)
        except Exception as e:
            logger.error("Failed to stop capture process %d: %s", self.pid, e)
        finally:
            for callback in self._stop_callbacks:
                try:
                    callback()
                except Exception as e:
                    logger.error("Stop callback failed: %s", e)

    async def __aenter__(self) -> CaptureSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


class CaptureProcessManager:
    """Launches ffmpeg screen-capture processes.

    Parameters
    ----------
    ffmpeg_path : str
        Encoder executable.
    framerate : int
        Capture frame rate.
    stop_timeout : float
        Timeout in seconds for reaping a killed encoder.
    boundary : str
        Multipart boundary the muxer should emit.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        framerate: int = 60,
        stop_timeout: float = 5.0,
        boundary: str = MPJPEG_BOUNDARY,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.framerate = framerate
        self.boundary = boundary
        self.stop_timeout = stop_timeout

    @classmethod
    def from_config(cls, config: StreamerConfig) -> CaptureProcessManager:
        """Create a manager from streamer configuration."""
        return cls(
            ffmpeg_path=config.ffmpeg_path,
            framerate=config.framerate,
            stop_timeout=config.stop_timeout,
            boundary=config.boundary,
        )

    def build_command(self, geometry: WindowGeometry, display: str) -> list[str]:
        """Build the encoder command line for one window.

        Output is a multipart MJPEG stream on stdout, tuned for fidelity:
        lowest quantizer, optimal Huffman tables, full-chroma pixels.

        Parameters
        ----------
        geometry : WindowGeometry
            Absolute rectangle to grab.
        display : str
            X display to grab from.

        Returns
        -------
        list[str]
            Command and arguments.
        """
        cmd = [
            self.ffmpeg_path,
            "-f", "x11grab",
            "-video_size", geometry.size,
            "-framerate", str(self.framerate),
            "-i", f"{display}+{geometry.x},{geometry.y}",
            "-c:v", "mjpeg",
            "-q:v", "1",  # 1-31, lower is better
            "-huffman", "optimal",
            "-pix_fmt", "yuvj444p",
            "-f", "mpjpeg",
        ]
        if self.boundary != MPJPEG_BOUNDARY:
            cmd += ["-boundary_tag", self.boundary]
        cmd.append("-")
        return cmd

    async def start(self, geometry: WindowGeometry, display: str) -> CaptureSession:
        """Start capturing a window.

        Parameters
        ----------
        geometry : WindowGeometry
            Absolute rectangle to grab.
        display : str
            X display to grab from.

        Returns
        -------
        CaptureSession
            Running session; the caller owns it and must stop it.

        Raises
        ------
        LaunchError
            If the encoder is missing or refuses to start.
        """
        cmd = self.build_command(geometry, display)
        env = os.environ.copy()
        env["DISPLAY"] = display

        logger.info("Starting capture: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            logger.error("Failed to start capture: %s", e)
            raise LaunchError(str(e), command=cmd) from e

        logger.info("Started capture process with PID %d", process.pid)
        return CaptureSession(process, geometry, cmd, stop_timeout=self.stop_timeout)

    def is_running(self, pid: int) -> bool:
        """Check if a capture process is alive (zombies count as dead).

        Parameters
        ----------
        pid : int
            Process ID to check.

        Returns
        -------
        bool
            True if process is running.
        """
        try:
            proc = psutil.Process(pid)
            return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
