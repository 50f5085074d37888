from __future__ import annotations

import subprocess
from dataclasses import dataclass


EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """Runs an external command and captures its output.

    A missing binary or a timeout is reported as a failed ProcessResult instead
    of an exception, so callers only ever look at the exit code.
    """

    def run(self, args: list[str], timeout: float | None = None) -> ProcessResult:
        try:
            proc = subprocess.run(
                [str(a) for a in args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                timeout=timeout,
            )
        except FileNotFoundError:
            return ProcessResult(EXIT_NOT_FOUND, "", f"executable not found: {args[0]}")
        except subprocess.TimeoutExpired:
            return ProcessResult(EXIT_TIMEOUT, "", f"timed out after {timeout}s: {args[0]}")

        return ProcessResult(
            proc.returncode,
            proc.stdout.decode("utf-8", errors="replace"),
            proc.stderr.decode("utf-8", errors="replace"),
        )
