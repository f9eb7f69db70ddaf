"""Console listener that reports progress and asks the user for gated input."""

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from onboarding_preflight.errors import EmptySelectionError, PreflightError
from onboarding_preflight.gate import CODE_LENGTH, VerificationGate
from onboarding_preflight.models.result import ProbeResult
from onboarding_preflight.models.selection import SelectedFile
from onboarding_preflight.orchestrator import TestOrchestrator
from onboarding_preflight.report import STATUS_SYMBOLS

CODE_PROMPT = f"Enter the {CODE_LENGTH}-digit code from the email: "
FILES_PROMPT = "Paths of the downloaded files to upload (space-separated): "


async def open_stdin_reader() -> asyncio.StreamReader:
    """Wrap stdin in a stream reader so prompts can be cancelled."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
    )
    return reader


@dataclass(kw_only=True)
class ConsolePrompter:
    """Run listener logging progress and answering gates from a line reader."""

    log: logging.Logger
    orchestrator: TestOrchestrator | None = None
    reader: asyncio.StreamReader | None = None
    prompt_stream: TextIO = field(default=sys.stderr, repr=False)
    _prompts: dict[VerificationGate, asyncio.Task[None]] = field(
        default_factory=dict, repr=False
    )

    def result_changed(self, index: int, result: ProbeResult) -> None:
        if result.status == "PENDING":
            return
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        self.log.info("%s [%d] %s: %s", symbol, index + 1, result.name, result.message)

    def gate_opened(self, gate: VerificationGate) -> None:
        if self.orchestrator is None:
            raise PreflightError("Prompter is not attached to an orchestrator")
        # stdin has a single reader; an earlier prompt must not keep it
        self.close()
        task = asyncio.get_running_loop().create_task(
            self._answer(gate, self.orchestrator)
        )
        self._prompts[gate] = task
        task.add_done_callback(lambda _: self._prompts.pop(gate, None))

    def gate_closed(self, gate: VerificationGate) -> None:
        if (task := self._prompts.pop(gate, None)) is not None:
            task.cancel()

    def close(self) -> None:
        """Cancel prompts still waiting for input."""
        for task in tuple(self._prompts.values()):
            task.cancel()

    async def _read_line(self, prompt: str) -> str | None:
        if self.reader is None:
            self.reader = await open_stdin_reader()
        print(prompt, end="", file=self.prompt_stream, flush=True)
        line = await self.reader.readline()
        if not line:
            return None
        return line.decode().strip()

    async def _answer(
        self, gate: VerificationGate, orchestrator: TestOrchestrator
    ) -> None:
        while not gate.done:
            if gate.kind == "code":
                line = await self._read_line(CODE_PROMPT)
                if line is None:
                    return
                if not orchestrator.submit_verification_code(gate.test_id, line):
                    self.log.warning("The code must be %d digits", CODE_LENGTH)
                continue

            line = await self._read_line(FILES_PROMPT)
            if line is None:
                return
            try:
                files = [SelectedFile.from_path(Path(part)) for part in line.split()]
                orchestrator.submit_files(gate.test_id, files)
            except EmptySelectionError:
                self.log.warning("Select at least one file")
            except OSError as exc:
                self.log.warning("Cannot read file: %s", exc)
