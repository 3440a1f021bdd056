"""
The tracked build set and the merge rules applied to it.

``TrackedBuilds`` is a plain data structure: it does no I/O and no locking.
``BuildMonitor`` owns the only instance and serializes every mutation.
"""

from dataclasses import dataclass

from kitewatch.models import Build, BuildRef, BuildState

DEFAULT_COMPLETED_CAP = 20


@dataclass(frozen=True)
class Transition:
    """A tracked build changed state between two observations."""

    build: Build
    old_state: BuildState

    @property
    def new_state(self) -> BuildState:
        return self.build.state


def build_sort_key(build: Build) -> tuple[int, float]:
    return (build.state.sort_order, -build.sort_date.timestamp())


def sort_builds(builds) -> list[Build]:
    """Order by state rank, then most recently started (or created) first."""
    return sorted(builds, key=build_sort_key)


def cap_completed(builds, cap: int = DEFAULT_COMPLETED_CAP) -> list[Build]:
    """Keep every active build and the ``cap`` most recent completed ones."""
    active = [b for b in builds if b.is_active]
    completed = sorted(
        (b for b in builds if b.is_completed),
        key=lambda b: b.sort_date,
        reverse=True,
    )
    return active + completed[:cap]


class TrackedBuilds:
    """Builds currently shown to the user, plus manual references and dismissals."""

    def __init__(self, completed_cap: int = DEFAULT_COMPLETED_CAP):
        self._completed_cap = completed_cap
        self._builds: dict[str, Build] = {}
        self._ordered: tuple[Build, ...] = ()
        # Manual reference -> id of the build it resolved to
        self._manual_refs: dict[BuildRef, str] = {}
        self._dismissed: set[str] = set()
        self.has_completed_first_fetch = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[Build, ...]:
        """Published builds in display order."""
        return self._ordered

    def get(self, build_id: str) -> Build | None:
        return self._builds.get(build_id)

    @property
    def manual_refs(self) -> tuple[BuildRef, ...]:
        return tuple(self._manual_refs)

    @property
    def dismissed_ids(self) -> frozenset[str]:
        return frozenset(self._dismissed)

    def has_ref(self, ref: BuildRef) -> bool:
        return ref in self._manual_refs

    def __contains__(self, build_id: str) -> bool:
        return build_id in self._builds

    def __len__(self) -> int:
        return len(self._builds)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def reconcile(self, fetched: list[Build]) -> list[Transition]:
        """
        Merge a poll result into the tracked set.

        Dismissed builds are skipped. A build already tracked keeps its
        manual flag and yields a transition when its state changed; a build
        seen for the first time is inserted silently. Completed builds are
        then capped and the result re-sorted.

        Returns:
            Transitions in the order the fetched builds were processed
        """
        working = dict(self._builds)
        transitions: list[Transition] = []

        for build in fetched:
            if build.id in self._dismissed:
                continue
            transition = self._merge_into(working, build)
            if transition is not None:
                transitions.append(transition)

        self._publish(cap_completed(working.values(), self._completed_cap))
        self.has_completed_first_fetch = True
        return transitions

    def upsert(self, build: Build) -> Transition | None:
        """Insert or refresh a single build, lifting any dismissal of it."""
        self._dismissed.discard(build.id)
        working = dict(self._builds)
        transition = self._merge_into(working, build)
        self._publish(working.values())
        self.has_completed_first_fetch = True
        return transition

    def add_ref(self, ref: BuildRef, build_id: str) -> None:
        self._manual_refs[ref] = build_id

    def remove(self, build_id: str) -> Build | None:
        """Dismiss a build and forget its manual reference."""
        self._dismissed.add(build_id)
        build = self._builds.get(build_id)
        self._drop_refs_for(build_id, build)
        if build is None:
            return None
        self._publish(b for b in self._ordered if b.id != build_id)
        return build

    def remove_completed(self) -> list[Build]:
        """Dismiss every completed build. Returns the builds removed."""
        completed = [b for b in self._ordered if b.is_completed]
        for build in completed:
            self._dismissed.add(build.id)
            self._drop_refs_for(build.id, build)
        self._publish(b for b in self._ordered if b.is_active)
        return completed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _merge_into(working: dict[str, Build], build: Build) -> Transition | None:
        existing = working.get(build.id)
        transition = None
        if existing is not None:
            if existing.added_manually:
                build = build.mark_manual()
            if existing.state != build.state:
                transition = Transition(build=build, old_state=existing.state)
        working[build.id] = build
        return transition

    def _drop_refs_for(self, build_id: str, build: Build | None) -> None:
        stale = [
            ref for ref, ref_build_id in self._manual_refs.items()
            if ref_build_id == build_id or (build is not None and ref == build.ref)
        ]
        for ref in stale:
            del self._manual_refs[ref]

    def _publish(self, builds) -> None:
        ordered = sort_builds(builds)
        self._ordered = tuple(ordered)
        self._builds = {b.id: b for b in ordered}
