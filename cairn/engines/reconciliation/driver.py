"""
Reconciliation driver - rebuilds and publishes the project collection.

One pass reads project summaries from the ledger, assembles every project
concurrently, drops the ones that could not be assembled and publishes the
rest to the ProjectStore in a single swap. A pass never raises: if the ledger
page itself cannot be read, the failure is recorded once on the store and the
previously published collection stays in place.

Every re-trigger (session start, after a write) runs the full pipeline again.
Projects are never patched individually.
"""

import asyncio
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from cairn.config import Settings
from cairn.engines.reconciliation.limits import CallLimiter
from cairn.engines.reconciliation.project_assembler import ProjectAssembler
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.ledger.records import ProjectSummary
from cairn.kernel.state.project_store import ProjectSnapshot, ProjectStore
from cairn.kernel.storage.content_resolver import ContentResolver
from cairn.logging_config import correlation_scope, get_logger
from cairn.orchestration.state_machine import ReproducibilityState, is_expected_transition
from cairn.schemas.project import Project

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class ReconciliationDriver:
    """
    Run reconciliation passes and publish their results.

    Usage:
        driver = ReconciliationDriver.from_settings(settings, ledger, content, store)
        snapshot = await driver.reconcile()
    """

    def __init__(
        self,
        ledger: LedgerGateway,
        assembler: ProjectAssembler,
        store: ProjectStore,
        limiter: CallLimiter,
        *,
        page_size: int = MAX_PAGE_SIZE,
        max_pages: int = 20,
    ):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self.ledger = ledger
        self.assembler = assembler
        self.store = store
        self.limiter = limiter
        self.page_size = page_size
        self.max_pages = max(1, max_pages)
        # Passes run one at a time so the last publish is the newest read
        self._pass_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        ledger: LedgerGateway,
        content: ContentResolver,
        store: ProjectStore,
    ) -> "ReconciliationDriver":
        limiter = CallLimiter(settings.max_concurrency, settings.resolution_timeout_seconds)
        assembler = ProjectAssembler(
            ledger,
            content,
            limiter,
            default_total_units=settings.certificate_default_units,
        )
        return cls(
            ledger,
            assembler,
            store,
            limiter,
            page_size=min(settings.page_size, MAX_PAGE_SIZE),
            max_pages=settings.max_pages,
        )

    async def reconcile(self, offset: int = 0) -> ProjectSnapshot:
        """Reconcile one page of projects starting at `offset` and publish it."""
        return await self._run_pass(lambda: self._read_page(offset))

    async def reconcile_all(self) -> ProjectSnapshot:
        """Reconcile every registered project, page by page, and publish once."""
        return await self._run_pass(self._read_all_pages)

    async def _run_pass(
        self, read_summaries: Callable[[], Awaitable[List[ProjectSummary]]]
    ) -> ProjectSnapshot:
        async with self._pass_lock:
            return await self._locked_pass(read_summaries)

    async def _locked_pass(
        self, read_summaries: Callable[[], Awaitable[List[ProjectSummary]]]
    ) -> ProjectSnapshot:
        pass_id = f"pass-{uuid.uuid4().hex[:12]}"
        with correlation_scope(pass_id, inherit=True):
            try:
                try:
                    summaries = await read_summaries()
                except Exception as exc:
                    logger.error(
                        "Reconciliation pass aborted: project list unavailable",
                        extra={"pass_id": pass_id, "error": str(exc)},
                    )
                    return self.store.record_failure(f"Project list unavailable: {exc}")

                projects = await self._assemble(summaries, pass_id)
                return self._publish(projects, len(summaries), pass_id)
            except Exception as exc:
                logger.exception("Reconciliation pass failed", extra={"pass_id": pass_id})
                return self.store.record_failure(f"Reconciliation failed: {exc}")

    async def _read_page(self, offset: int) -> List[ProjectSummary]:
        return await self.limiter.run(
            self.ledger.list_projects(offset, self.page_size),
            what="getAllProjects",
        )

    async def _read_all_pages(self) -> List[ProjectSummary]:
        summaries: List[ProjectSummary] = []
        for page in range(self.max_pages):
            batch = await self._read_page(page * self.page_size)
            summaries.extend(batch)
            if len(batch) < self.page_size:
                break
        else:
            logger.warning(
                "Stopped paging at max_pages",
                extra={"max_pages": self.max_pages, "page_size": self.page_size},
            )
        return summaries

    async def _assemble(self, summaries: Sequence[ProjectSummary], pass_id: str) -> List[Project]:
        results = await asyncio.gather(
            *(self.assembler.assemble(s) for s in summaries),
            return_exceptions=True,
        )

        projects: List[Project] = []
        seen = set()
        for summary, result in zip(summaries, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Project assembly raised",
                    extra={"pass_id": pass_id, "project_id": summary.project_id},
                    exc_info=(type(result), result, result.__traceback__),
                )
                continue
            if result is None:
                continue
            if result.id in seen:
                logger.debug("Duplicate project skipped", extra={"project_id": result.id})
                continue
            seen.add(result.id)
            projects.append(result)
        return projects

    def _publish(self, projects: List[Project], summary_count: int, pass_id: str) -> ProjectSnapshot:
        previous = self.store.snapshot
        snapshot = self.store.publish(projects)
        self._log_state_changes(previous, snapshot)
        logger.info(
            "Projects published",
            extra={
                "pass_id": pass_id,
                "version": snapshot.version,
                "published": len(projects),
                "dropped": summary_count - len(projects),
            },
        )
        return snapshot

    @staticmethod
    def _log_state_changes(previous: ProjectSnapshot, current: ProjectSnapshot) -> None:
        before: Dict[str, ReproducibilityState] = {
            r.proof_id: r.state for p in previous.projects for r in p.reproducibilities
        }
        for project in current.projects:
            for rep in project.reproducibilities:
                old: Optional[ReproducibilityState] = before.get(rep.proof_id)
                if old is None or old == rep.state:
                    continue
                fields = {
                    "project_id": project.id,
                    "proof_id": rep.proof_id,
                    "from_state": old.value,
                    "to_state": rep.state.value,
                }
                if is_expected_transition(old, rep.state):
                    logger.info("Proof state changed", extra=fields)
                else:
                    logger.warning("Unexpected proof state change", extra=fields)
