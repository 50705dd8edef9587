"""systemd unit control and journal following."""

import queue
import subprocess
import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from mwcontainers.errors import (
    DeployError,
    LogStreamClosed,
    LogWaitCancelled,
    SentinelNotFound,
    SentinelTimeout,
)
from mwcontainers.errors_catalog import actionable_error

_EOF = object()


class JournalFollower:
    """Reads a live journal stream on a helper thread so waits can time out."""

    def __init__(self, process, unit: str, logger, poll_interval: float = 0.5):
        self.process = process
        self.unit = unit
        self.logger = logger
        self.poll_interval = poll_interval
        self._lines: "queue.Queue" = queue.Queue()
        self._reader = threading.Thread(
            target=self._pump,
            name=f"journal-{unit}",
            daemon=True,
        )
        self._reader.start()

    def _pump(self):
        try:
            for line in self.process.stdout:
                self._lines.put(line.rstrip("\r\n"))
        except (OSError, ValueError) as exc:
            self.logger.debug("Journal reader stopped: %s", exc)
        finally:
            self._lines.put(_EOF)

    def wait_for(
        self,
        sentinel: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Blocks until a line containing ``sentinel`` arrives and returns it.

        ``timeout`` of None waits forever. Raises SentinelTimeout,
        LogStreamClosed or LogWaitCancelled otherwise.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise LogWaitCancelled(f"Stopped waiting for '{sentinel}' in the {self.unit} journal.")

            wait = self.poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise SentinelTimeout(
                        actionable_error(
                            "sentinel_timeout",
                            timeout=f"{timeout:g}",
                            sentinel=sentinel,
                            unit=self.unit,
                        )
                    )
                wait = min(wait, remaining)

            try:
                line = self._lines.get(timeout=wait)
            except queue.Empty:
                continue

            if line is _EOF:
                raise LogStreamClosed(
                    actionable_error("log_stream_closed", sentinel=sentinel, unit=self.unit)
                )

            self.logger.debug("[%s] %s", self.unit, line)
            if sentinel in line:
                return line

    def close(self):
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()


class JournalService:
    """Restarts the supervising unit and inspects its journal."""

    def __init__(self, logger, console, command_runner, subprocess_module=subprocess):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.subprocess = subprocess_module

    def restart_unit(self, unit: str):
        self.console.print(f"[blue]Restarting {unit}...[/blue]")
        self.command_runner.run(["systemctl", "restart", unit], capture_output=True)

    @contextmanager
    def follow(self, unit: str, poll_interval: float = 0.5) -> Iterator[JournalFollower]:
        """Follows only journal lines written after this call."""
        cmd = ["journalctl", "-u", unit, "-f", "-n", "0", "-o", "cat"]
        self.logger.debug("Executing: %s", " ".join(cmd))
        try:
            process = self.subprocess.Popen(
                cmd,
                stdout=self.subprocess.PIPE,
                stderr=self.subprocess.DEVNULL,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as exc:
            raise DeployError(actionable_error("command_not_found", command="journalctl")) from exc
        except OSError as exc:
            raise DeployError(f"Failed to follow the {unit} journal: {exc}") from exc

        if not process.stdout:
            raise DeployError("journalctl did not expose its output stream.")

        follower = JournalFollower(process, unit, self.logger, poll_interval=poll_interval)
        try:
            yield follower
        finally:
            follower.close()

    def history(self, unit: str) -> List[str]:
        result = self.command_runner.run(
            ["journalctl", "-u", unit, "--no-pager", "-o", "cat"],
            capture_output=True,
        )
        return [line for line in (result.stdout or "").splitlines() if line.strip()]

    def require_last_line(self, unit: str, marker: str) -> str:
        lines = self.history(unit)
        last_line = lines[-1] if lines else ""
        if marker not in last_line:
            raise SentinelNotFound(
                f"Last {unit} log line does not contain {marker}: {last_line!r}",
                history=lines,
            )
        return last_line
