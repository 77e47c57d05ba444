"""
In-memory application state: the published project collection and the
funding history.

Both are held as immutable snapshots. Publishing swaps the snapshot reference
in one assignment, so a reader sees either the previous full collection or
the new one, never a mix.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from cairn.kernel.ledger.records import same_address
from cairn.schemas.project import FundingEvent, Project, Reproducibility


@dataclass(frozen=True)
class ProjectSnapshot:
    """One published version of the project collection."""
    version: int
    projects: Tuple[Project, ...] = ()
    published_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def get(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None


class ProjectStore:
    """
    Single source of truth for reconciled projects.

    Only the reconciliation driver publishes; everything else reads.
    """

    def __init__(self) -> None:
        self._snapshot = ProjectSnapshot(version=0)
        self._funding: Tuple[FundingEvent, ...] = ()

    @property
    def snapshot(self) -> ProjectSnapshot:
        return self._snapshot

    @property
    def projects(self) -> Tuple[Project, ...]:
        return self._snapshot.projects

    def get(self, project_id: str) -> Optional[Project]:
        return self._snapshot.get(project_id)

    def publish(self, projects: Sequence[Project]) -> ProjectSnapshot:
        """Replace the published collection with `projects`."""
        snapshot = ProjectSnapshot(
            version=self._snapshot.version + 1,
            projects=tuple(projects),
            published_at=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        return snapshot

    def record_failure(self, error: str) -> ProjectSnapshot:
        """Keep the current collection but note why the latest pass could not publish."""
        self._snapshot = replace(self._snapshot, last_error=error)
        return self._snapshot

    # Views for the current session

    def owned_by(self, wallet_address: Optional[str]) -> List[Project]:
        return [p for p in self._snapshot.projects if p.is_owned_by(wallet_address)]

    def discover(self, wallet_address: Optional[str]) -> List[Project]:
        """Projects the wallet can review, i.e. everything it does not own."""
        return [p for p in self._snapshot.projects if not p.is_owned_by(wallet_address)]

    def contributions_of(self, wallet_address: Optional[str]) -> List[Reproducibility]:
        contributions: List[Reproducibility] = []
        for project in self._snapshot.projects:
            contributions.extend(project.reproducibilities_by(wallet_address))
        return contributions

    # Funding history

    def record_funding(self, event: FundingEvent) -> None:
        self._funding = (event,) + self._funding

    def funding_events(self, funder: Optional[str] = None) -> List[FundingEvent]:
        """Funding history, newest first, optionally limited to one funder."""
        if funder is None:
            return list(self._funding)
        return [e for e in self._funding if same_address(e.funder, funder)]
