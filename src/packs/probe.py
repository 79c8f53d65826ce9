"""
Probe pack: branch a recording on the result of a shell command

    Use Probe IfProbeMatched IfProbeNotMatched

    > Probe /ready/ $1
    curl -s http://localhost:8080/health

    > IfProbeMatched $1
    service is ready

    > IfProbeNotMatched $1
    service is NOT ready

`Probe` runs its payload through the shell at expansion time and emits
nothing. With a `/regex/` the probe matches when the pattern is found in
stdout, stderr or the error text; without one it matches when the
command exits 0. The `IfProbe*` macros type their payload depending on
the last probe.

Pack options:
    default_timeout_ms: Command timeout (default 5000)
    runner: Callable replacing subprocess.run (same signature subset)
"""

import re
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..lib.log import LOG
from ..models.macros import PackContext

PATTERN_TOKEN = re.compile(r'Probe\s+/(.+?)/(?:\s|$)')
DEFAULT_TIMEOUT_MS = 5000


@dataclass
class ProbeResult:
    """
    Outcome of the last Probe

    Attributes:
        command: Command run, None if no probe ran
        stdout: Captured standard output
        stderr: Captured standard error
        exit_code: Process exit status, None if it did not complete
        matched: Pattern found in the combined output
        pattern: Pattern source, None when no pattern was given
        error: Failure description (timeout, missing command, ...)
    """
    command: Optional[str] = None
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    matched: bool = False
    pattern: Optional[str] = None
    error: Optional[str] = None

    def effective_match(self) -> bool:
        """Pattern match if a pattern was given, else exit status 0"""
        if self.pattern is not None:
            return self.matched
        return self.exit_code == 0 and self.command is not None


class Prober:
    """Runs probe commands and remembers the last result"""

    def __init__(self, runner: Callable[..., Any] = subprocess.run, timeout_ms: float = DEFAULT_TIMEOUT_MS) -> None:
        self.runner = runner
        self.timeout_ms = timeout_ms
        self.last = ProbeResult()

    def command_run(self, command: str, pattern: Optional["re.Pattern[str]"]) -> ProbeResult:
        """
        Run a command through the shell and record the outcome

        Timeouts and OS errors are recorded in the result rather than raised.
        """
        stdout = ""
        stderr = ""
        exit_code = None
        error = None

        try:
            completed = self.runner(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout_ms / 1000,
            )
            stdout = completed.stdout or ""
            stderr = completed.stderr or ""
            exit_code = completed.returncode if isinstance(completed.returncode, int) else None
        except subprocess.TimeoutExpired as e:
            error = f"Probe timed out after {e.timeout}s"
        except OSError as e:
            error = str(e)

        combined = stdout + stderr + (error or "")
        matched = bool(pattern.search(combined)) if pattern is not None else False

        self.last = ProbeResult(
            command=command,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            matched=matched,
            pattern=pattern.pattern if pattern is not None else None,
            error=error,
        )
        LOG(f"Probe '{command}' exit={exit_code} matched={self.last.effective_match()}", level=2)
        return self.last

    def Probe(self, payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        command = str(payload or "").strip()
        if not command:
            self.last = ProbeResult(error="No command provided to Probe")
            return []

        pattern = None
        match = PATTERN_TOKEN.search(raw_token or "")
        if match:
            try:
                pattern = re.compile(match.group(1))
            except re.error:
                LOG(f"Ignoring invalid probe pattern /{match.group(1)}/", level=1)
                pattern = None

        self.command_run(command, pattern)
        return []


def setup(context: PackContext) -> None:
    type_format = context.helpers.type_format
    options = context.options
    runner = options.get("runner")
    timeout = options.get("default_timeout_ms", options.get("defaultTimeoutMs"))

    prober = Prober(
        runner=runner if callable(runner) else subprocess.run,
        timeout_ms=timeout if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) else DEFAULT_TIMEOUT_MS,
    )

    def IfProbeMatched(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        if not prober.last.effective_match():
            return []
        return [type_format(payload or "")]

    def IfProbeNotMatched(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        if prober.last.effective_match():
            return []
        return [type_format(payload or "")]

    context.macros_register({
        "Probe": prober.Probe,
        "IfProbeMatched": IfProbeMatched,
        "IfProbeNotMatched": IfProbeNotMatched,
    })
