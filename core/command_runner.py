"""Run native build tool invocations, for real or as a recorded dry run."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import subprocess

from loguru import logger


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {format_command(result.command)}"
        if result.streamed:
            message = f"{message}\nOutput was streamed above."
        elif result.stderr or result.stdout:
            message = f"{message}\n{(result.stderr or result.stdout).rstrip()}"
        super().__init__(message)
        self.result = result


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return format_command(command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        logger.debug(f"Running {format_command(command)}" + (f" in {cwd}" if cwd else ""))
        merged_env = self._merge_environment(env)
        if stream:
            # Output goes straight to the terminal; nothing is captured.
            process = subprocess.run(
                [str(part) for part in command],
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                check=False,
            )
            result = CommandResult(command=command, returncode=process.returncode, stdout="", stderr="", streamed=True)
        else:
            process = subprocess.run(
                [str(part) for part in command],
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                capture_output=True,
                text=True,
                check=False,
            )
            result = CommandResult(
                command=command,
                returncode=process.returncode,
                stdout=process.stdout,
                stderr=process.stderr,
            )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str] = field(default_factory=dict)
    note: str | None = None


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    ``fail_when`` is a test hook that simulates a failing tool: every
    recorded command for which it returns true produces a non-zero result
    (and a :class:`CommandError` when ``check`` is set). Dry runs leave it unset.
    """

    def __init__(self, *, fail_when: Callable[[Sequence[str]], bool] | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self._fail_when = fail_when

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self.commands.append(
            RecordedCommand(
                command=[str(part) for part in command],
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env else {},
                note=note,
            )
        )
        failed = self._fail_when is not None and self._fail_when(command)
        result = CommandResult(
            command=command,
            returncode=1 if failed else 0,
            stdout="",
            stderr="simulated failure" if failed else "",
        )
        if check and failed:
            raise CommandError(result)
        return result

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            cwd = record.cwd or default_cwd
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(self.format_command(record.command))
            yield " ".join(parts)


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "format_command",
]
