# metric_calendar/selection.py
from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from .theme import LEGEND_DIMMED, METRIC_DIMMED
from .utils import cell_id_from_canonical

logger = logging.getLogger(__name__)

FILL_DEFAULT = "default"
FILL_SELECTED = "selected"


# ---------- identities ----------
@dataclass(frozen=True)
class SelectionIdentity:
    category_index: Optional[int] = None
    measure: Optional[str] = None
    series: Optional[str] = None
    metadata: Optional[str] = None  # canonical date for day/bar identities
    category_column: Optional[int] = None

    @property
    def cell_id(self) -> Optional[str]:
        return cell_id_from_canonical(self.metadata) if self.metadata else None


class SelectionIdBuilder:
    """
    Builds identities from a flat row index spread over one or more category
    columns: the index is walked across the columns, subtracting each column's
    length until it fits.
    """

    def __init__(self, categories: Sequence):
        self.categories = list(categories or [])

    def _locate(self, index: int) -> tuple:
        category_index = 0
        identity_index = index
        for category_index, col in enumerate(self.categories):
            size = len(col.values)
            if identity_index > size - 1:
                identity_index -= size
            else:
                break
        return category_index, identity_index

    def create_selection_id(
        self,
        index: int,
        *,
        measure: Optional[str] = None,
        series: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> SelectionIdentity:
        column, row = self._locate(index)
        return SelectionIdentity(
            category_index=row,
            measure=measure,
            series=series,
            metadata=metadata,
            category_column=column,
        )


def series_identity(name: str, query_name: Optional[str] = None) -> SelectionIdentity:
    return SelectionIdentity(series=name, measure=query_name or name)


def cells_for_identities(ids: Sequence[SelectionIdentity]) -> List[str]:
    """Distinct cell ids addressed by `ids`, in order; identities without a date are skipped."""
    out: List[str] = []
    for ident in ids:
        cid = ident.cell_id
        if cid and cid not in out:
            out.append(cid)
    return out


# ---------- host contract ----------
class SelectionManager(Protocol):
    def select(self, identity: SelectionIdentity, multi_select: bool = False) -> Future: ...

    def clear(self) -> None: ...

    def get_selection_ids(self) -> List[SelectionIdentity]: ...

    def register_on_select_callback(self, callback: Callable[[List[SelectionIdentity]], None]) -> None: ...


class SessionSelectionManager:
    """
    In-process selection host.
    Additive selects toggle membership, plain selects replace the selection.
    Own calls never fire the on-select callbacks; only `push_external` does,
    the way a host reports selections made elsewhere.
    With `deferred=True`, futures stay pending until `flush()`.
    """

    def __init__(self, deferred: bool = False):
        self.deferred = deferred
        self._ids: List[SelectionIdentity] = []
        self._callbacks: List[Callable[[List[SelectionIdentity]], None]] = []
        self._pending: List[Future] = []

    def select(self, identity: SelectionIdentity, multi_select: bool = False) -> Future:
        if multi_select:
            if identity in self._ids:
                self._ids.remove(identity)
            else:
                self._ids.append(identity)
        else:
            self._ids = [identity]
        fut: Future = Future()
        if self.deferred:
            self._pending.append(fut)
        else:
            fut.set_result(list(self._ids))
        return fut

    def clear(self) -> None:
        self._ids = []

    def get_selection_ids(self) -> List[SelectionIdentity]:
        return list(self._ids)

    def register_on_select_callback(self, callback: Callable[[List[SelectionIdentity]], None]) -> None:
        self._callbacks.append(callback)

    def push_external(self, ids: Sequence[SelectionIdentity]) -> None:
        self._ids = list(ids)
        for cb in list(self._callbacks):
            cb(list(self._ids))

    def flush(self) -> int:
        """Resolve deferred futures with the current ids. Returns how many were resolved."""
        pending, self._pending = self._pending, []
        for fut in pending:
            fut.set_result(list(self._ids))
        return len(pending)


class PendingResult:
    """
    Single-slot continuation channel for host acknowledgements.
    Issuing a new request supersedes the previous one: a continuation runs
    only if its request is still the latest when the future resolves.
    """

    def __init__(self):
        self._token = 0

    @property
    def token(self) -> int:
        return self._token

    def issue(self, future: Future, continuation: Callable[[list], None]) -> int:
        self._token += 1
        token = self._token

        def _done(f: Future) -> None:
            if token != self._token:
                logger.debug("Dropping superseded selection result #%d", token)
                return
            continuation(f.result())

        future.add_done_callback(_done)
        return token


# ---------- legend highlight ----------
@dataclass(frozen=True)
class LegendHighlight:
    legend_opacity: Dict[str, float]
    metric_opacity: Dict[str, float]


def legend_highlight(
    metric_names: Sequence[str], clicked: str, selected_count: int, returned_count: int
) -> LegendHighlight:
    """Opacity of legend entries and metric bars after a legend click resolves."""
    legend = {n: (LEGEND_DIMMED if returned_count > 0 else 1.0) for n in metric_names}
    if clicked in legend:
        legend[clicked] = 1.0
    metric = {
        n: (METRIC_DIMMED if n != clicked and selected_count > 0 else 1.0) for n in metric_names
    }
    return LegendHighlight(legend_opacity=legend, metric_opacity=metric)


# ---------- state machine ----------
class SelectionState(str, Enum):
    IDLE = "idle"
    SINGLE = "single"
    MULTI = "multi"


class SelectionStateMachine:
    """
    Highlighted day cells, reconciled between local clicks and the host.

    `paint(cell_id, fill_state)` is called for every cell whose fill changes;
    the engine points it at the current painter on each render.
    """

    def __init__(self, manager: SelectionManager, paint: Optional[Callable[[str, str], None]] = None):
        self.manager = manager
        self.paint = paint
        self.selected: List[str] = []
        self.multiple = False  # more than one cell held

    # ---- queries ----
    @property
    def state(self) -> SelectionState:
        if not self.selected:
            return SelectionState.IDLE
        return SelectionState.SINGLE if len(self.selected) == 1 else SelectionState.MULTI

    def is_selected(self, cell_id: str) -> bool:
        return cell_id in self.selected

    # ---- painting ----
    def _paint(self, cell_id: str, fill: str) -> None:
        if self.paint is not None:
            self.paint(cell_id, fill)

    def clear_local(self) -> None:
        """Drop every highlight without telling the host."""
        for cid in self.selected:
            self._paint(cid, FILL_DEFAULT)
        self.selected = []

    # ---- transitions ----
    def _toggle(self, cell_id: str) -> None:
        if cell_id in self.selected:
            self.selected.remove(cell_id)
            self._paint(cell_id, FILL_DEFAULT)
        else:
            self.selected.append(cell_id)
            self._paint(cell_id, FILL_SELECTED)
        self.multiple = len(self.selected) > 1

    def _select_cell(self, cell_id: str, additive: bool) -> bool:
        """Update local highlight. False means the click deselected the only cell."""
        if additive:
            self._toggle(cell_id)
            return True

        was_selected = cell_id in self.selected
        self.clear_local()
        if was_selected and not self.multiple:
            return False
        self.selected = [cell_id]
        self._paint(cell_id, FILL_SELECTED)
        self.multiple = False
        return True

    def click(self, cell_id: str, targets: Sequence[SelectionIdentity], additive: bool = False) -> SelectionState:
        """
        A click on a day cell or one of its bars.
        `targets` are the identities the click stands for (one per bar click).
        Additive clicks toggle their identities on the host; plain clicks replace it.
        """
        if not self._select_cell(cell_id, additive):
            self.manager.clear()
            return self.state

        if additive:
            if not self.selected:
                self.manager.clear()
                return self.state
            for ident in targets:
                self.manager.select(ident, True)
            return self.state

        self.manager.clear()
        for i, ident in enumerate(targets):
            self.manager.select(ident, i > 0)
        return self.state

    def background_click(self) -> None:
        if not self.selected:
            return
        self.clear_local()
        self.manager.clear()

    def apply_host_selection(self, ids: Sequence[SelectionIdentity]) -> SelectionState:
        """Repaint exactly the cells the host reports, dropping stale local highlight."""
        if len(ids) == 0:
            self.clear_local()
            self.multiple = False
            return self.state
        cells = cells_for_identities(ids)
        self.clear_local()
        for cid in cells:
            self.selected.append(cid)
            self._paint(cid, FILL_SELECTED)
        self.multiple = len(cells) > 1
        return self.state

    def sync_with_host(self) -> None:
        """Called at the top of every update: an empty host selection resets the local one."""
        if len(self.manager.get_selection_ids()) == 0:
            self.clear_local()
            self.multiple = False
