"""Run phases in order against a resumable RunState.

Phases already recorded in ``state.ran`` are skipped, so a saved state
can be reloaded and the same phase list run again to pick up where the
previous run stopped.  Skipping trusts the saved state; nothing is
re-verified.
"""

import logging
from typing import BinaryIO, List, Mapping, Optional, Sequence, TextIO

from textpixels.config import Phase, RunConfig
from textpixels.phases import PHASES, PhaseContext, PhaseSpec
from textpixels.run_state import RunState, load_state, save_state

logger = logging.getLogger(__name__)


class PipelineConfigError(ValueError):
    """Bad phase list or finish phase; raised before any state changes."""


def parse_phases(names: Sequence[str]) -> List[Phase]:
    phases = []
    for name in names:
        try:
            phases.append(Phase(name))
        except ValueError:
            raise PipelineConfigError(f"Unknown phase: {name}") from None
    return phases


class PipelineExecutor:
    """Drive the configured phases over one RunState."""

    def __init__(self, config: RunConfig,
                 registry: Optional[Mapping[Phase, PhaseSpec]] = None,
                 stdin: Optional[TextIO] = None,
                 stdout: Optional[BinaryIO] = None):
        self.config = config
        self.registry = PHASES if registry is None else registry
        self.stdin = stdin
        self.stdout = stdout
        self.phases = self._validate()

    def _validate(self) -> List[Phase]:
        phases = parse_phases(self.config.phases)
        missing = [p for p in phases if p not in self.registry]
        if missing:
            raise PipelineConfigError(f"Unknown phase: {missing[0].value}")
        if self.config.finish is not None and self.config.finish not in [p.value for p in phases]:
            raise PipelineConfigError(f"Bad finish phase: {self.config.finish}")
        return phases

    def initial_state(self) -> RunState:
        if self.config.load_state:
            return load_state(self.config.load_state)
        return RunState()

    def run(self, state: Optional[RunState] = None) -> RunState:
        if state is None:
            state = self.initial_state()
        # fresh caches for every run
        ctx = PhaseContext(config=self.config, stdin=self.stdin, stdout=self.stdout)

        for phase in self.phases:
            if phase.value in state.ran:
                logger.warning("Already ran %s", phase.value)
                continue

            spec = self.registry[phase]
            logger.info("Running %s phase", phase.value)
            logger.debug("  reads %s, writes %s",
                         ", ".join(spec.reads) or "-", ", ".join(spec.writes) or "-")
            spec.handler(state, ctx)
            state.ran.add(phase.value)

            if self.config.finish == phase.value:
                logger.info("Finished after %s phase", phase.value)
                break

        if self.config.save_state:
            save_state(state, self.config.save_state)
        return state


def run_pipeline(config: RunConfig, stdin: Optional[TextIO] = None,
                 stdout: Optional[BinaryIO] = None) -> RunState:
    return PipelineExecutor(config, stdin=stdin, stdout=stdout).run()
