"""Optimistic stage board cache for drag-and-drop surfaces.

A :class:`StageBoard` holds, per entity id, the stage the store last
confirmed and the stage currently shown. ``move`` shows the new stage at
once, awaits the commit callable, and reports the outcome through
``on_result``.

Confirmed state follows commit completion order, so the last commit to land
wins. While commits for an entity are in flight the board shows the most
recently requested of them; once none are left it shows the confirmed stage,
which is how a failed commit is rolled back.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Tuple

from leadflow.core.exceptions import StaleStageTransition

logger = logging.getLogger(__name__)

CommitFn = Callable[[Hashable, str], Awaitable[Any]]


@dataclass(frozen=True)
class MoveResult:
    entity_id: Hashable
    requested_stage: str
    shown_stage: str
    confirmed_stage: str
    ok: bool
    error: Optional[StaleStageTransition] = None


class StageBoard:
    def __init__(self, commit: CommitFn, on_result: Optional[Callable[[MoveResult], None]] = None):
        self._commit = commit
        self._on_result = on_result
        self._confirmed: Dict[Hashable, str] = {}
        self._inflight: Dict[Hashable, List[Tuple[int, str]]] = {}
        self._tokens = itertools.count()

    def load(self, entity_id: Hashable, stage: str) -> None:
        """Seed the cache with a stage read from the store."""
        self._confirmed[entity_id] = stage
        self._inflight.setdefault(entity_id, [])

    def stage_of(self, entity_id: Hashable) -> Optional[str]:
        inflight = self._inflight.get(entity_id)
        if inflight:
            return inflight[-1][1]
        return self._confirmed.get(entity_id)

    def confirmed_stage_of(self, entity_id: Hashable) -> Optional[str]:
        return self._confirmed.get(entity_id)

    def is_pending(self, entity_id: Hashable) -> bool:
        return bool(self._inflight.get(entity_id))

    async def move(self, entity_id: Hashable, stage: str) -> MoveResult:
        if entity_id not in self._confirmed:
            raise KeyError(entity_id)

        if self.stage_of(entity_id) == stage and not self.is_pending(entity_id):
            return self._report(MoveResult(entity_id, stage, stage, stage, True))

        token = next(self._tokens)
        inflight = self._inflight[entity_id]
        inflight.append((token, stage))
        try:
            await self._commit(entity_id, stage)
        except StaleStageTransition as e:
            inflight.remove((token, stage))
            logger.warning(
                "Stage move of %s to %s failed; showing %s",
                entity_id,
                stage,
                self.stage_of(entity_id),
            )
            return self._report(MoveResult(
                entity_id, stage, self.stage_of(entity_id), self._confirmed[entity_id], False, e,
            ))

        inflight.remove((token, stage))
        self._confirmed[entity_id] = stage
        return self._report(MoveResult(entity_id, stage, self.stage_of(entity_id), stage, True))

    def _report(self, result: MoveResult) -> MoveResult:
        if self._on_result is not None:
            self._on_result(result)
        return result
