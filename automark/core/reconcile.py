"""The "mark as automatic" pass and the cycle detection following it.

Strategy:
1. Every manual package that another installed package depends on is
   marked automatic (unless listed in the keep setting).
2. apt is asked what autoremove would now remove. Newly marked packages in
   that list are the candidates: they are only held by packages that are
   themselves going away, typically because of a dependency cycle.
3. Candidates go back to manual, then cycle detection runs on them.
4. The cyclic nodes alone are marked automatic and apt is asked again: each
   of them must be pending removal, otherwise detection is wrong and the
   run stops. They go back to manual either way.
5. The acyclic ones are marked automatic again; the cyclic ones stay manual
   and are reported so the administrator can decide.

If a simulation fails after flags were changed, those flags are restored
to manual before the error propagates.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from .apt import AptBackend, AptError
from .control import parse_control
from .resolution import CycleReport, DependencyGraph, detect_cycles, resolve_virtuals

logger = logging.getLogger(__name__)


class InconsistencyError(Exception):
    """Cycle detection disagrees with the package database.

    Signals a defect in the detection, never a condition to correct.
    """

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        super().__init__(
            "Packages reported as cyclic would not be removed by apt: "
            + ", ".join(self.names)
        )


@dataclass
class StatusRow:
    """Detailed status of one detection node."""
    name: str
    auto: bool
    cyclic: bool

    @property
    def verdict(self) -> str:
        return 'cyclic' if self.cyclic else 'acyclic'


@dataclass
class ReconcileResult:
    """Outcome of a reconcile run."""
    marked: Set[str] = field(default_factory=set)
    candidates: Set[str] = field(default_factory=set)
    report: CycleReport = field(default_factory=CycleReport)
    status: List[StatusRow] = field(default_factory=list)
    still_pending: Set[str] = field(default_factory=set)
    dry_run: bool = False


class Reconciler:
    """Bring automatic/manual flags in line with actual dependencies."""

    def __init__(self, backend: AptBackend, keep: Optional[Iterable[str]] = None,
                 dry_run: bool = False):
        self.backend = backend
        self.keep = set(keep or ())
        self.dry_run = dry_run

    def required_packages(self, installed: Set[str]) -> Set[str]:
        """Installed packages that some other installed package depends on."""
        records = {
            name: record
            for name, record in parse_control(self.backend.query_metadata()).items()
            if name in installed
        }
        graph = DependencyGraph.from_records(records, installed)
        resolve_virtuals(graph, records)

        required = set()
        for name, deps in graph.items():
            required.update(target for target in deps if target != name)
        return required & installed

    def plan_auto_marks(self) -> Set[str]:
        """Manual packages that should be marked automatic."""
        installed = self.backend.installed_packages()
        manual = self.backend.manual_packages() & installed
        required = self.required_packages(installed)

        kept = manual & required & self.keep
        if kept:
            logger.debug(f"Kept manual by config: {', '.join(sorted(kept))}")
        return (manual & required) - self.keep

    def run(self) -> ReconcileResult:
        """Run the whole pass.

        Raises:
            AptError: If a package tool fails
            InconsistencyError: If detection contradicts apt's removal plan
        """
        result = ReconcileResult(dry_run=self.dry_run)
        result.marked = self.plan_auto_marks()
        if not result.marked:
            logger.info("All manual packages are consistent")
            return result
        if self.dry_run:
            return result

        self.backend.mark_auto(result.marked)
        try:
            pending = self.backend.simulate_autoremove()
            result.candidates = pending & result.marked
            if result.candidates:
                self.backend.mark_manual(result.candidates)
        except AptError:
            logger.error("Simulation failed, restoring manual flags")
            self.backend.mark_manual(result.marked)
            raise

        if not result.candidates:
            return result

        logger.info(f"{len(result.candidates)} newly automatic package(s) would be removed")

        metadata = self.backend.query_metadata(result.candidates)
        result.report = detect_cycles(metadata, result.candidates)
        self.verify(result.report)

        self.backend.mark_auto(result.report.acyclic)
        result.status = self.node_status(result.report)

        result.still_pending = self.backend.simulate_autoremove() & result.report.acyclic
        if result.still_pending:
            logger.warning(
                f"Still removable after re-marking: {', '.join(sorted(result.still_pending))}"
            )
        return result

    def verify(self, report: CycleReport):
        """Ask apt whether every cyclic node really is removable on its own.

        The residual nodes are marked automatic, autoremove is simulated and
        they are marked manual again, whatever the outcome. Acyclic nodes
        never depend on residual ones, so leaving them manual here holds
        nothing back.

        Raises:
            InconsistencyError: If apt would keep any residual node
        """
        if not report.residual:
            return

        self.backend.mark_auto(report.residual)
        try:
            pending = self.backend.simulate_autoremove()
        finally:
            self.backend.mark_manual(report.residual)

        kept = report.residual - pending
        if kept:
            raise InconsistencyError(kept)

    def node_status(self, report: CycleReport) -> List[StatusRow]:
        """Current auto flag and verdict of every detection node."""
        auto = self.backend.auto_packages(report.nodes)
        return [
            StatusRow(name=name, auto=name in auto, cyclic=name in report.residual)
            for name in sorted(report.nodes)
        ]
