"""
Greedy chord selection.

Each step scores every candidate chord against the target and keeps the one
with the lowest loss. A chord is applied only if it does not raise the loss by
more than the configured tolerance; otherwise the run has stalled.
"""
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from .anchors import admissible_chords, admissible_partners
from .config import StringArtConfig
from .rasterizer import ChordRasterizer
from .scorer import score, grid_loss

Chord = Tuple[int, int]


@dataclass
class SelectionResult:
    chords: List[Chord]
    losses: List[float]  # losses[0] is the loss of the blank grid
    working: np.ndarray
    stop_reason: str  # "stall" | "exhausted" | "closed" | "limit"

    @property
    def initial_loss(self) -> float:
        return self.losses[0]

    @property
    def final_loss(self) -> float:
        return self.losses[-1]


@dataclass
class _StepBest:
    chord: Optional[Chord] = None
    loss: float = math.inf


class ChordSelector:
    def __init__(self, target: np.ndarray, anchors: np.ndarray,
                 config: StringArtConfig,
                 rasterizer: Optional[ChordRasterizer] = None):
        if target.shape != (config.size, config.size):
            raise ValueError(
                f"target is {target.shape}, expected ({config.size}, {config.size})"
            )
        if len(anchors) != config.num_anchors:
            raise ValueError(
                f"got {len(anchors)} anchors, expected {config.num_anchors}"
            )
        self.config = config
        self.target = np.array(target, dtype=np.float64)
        self.target.setflags(write=False)
        self.anchors = anchors
        self.rasterizer = rasterizer or ChordRasterizer.from_config(anchors, config)

        self.working = np.zeros_like(self.target)
        self.prev_loss = grid_loss(self.target, self.working)
        self.current = config.start_anchor
        self.chords: List[Chord] = []
        self.losses: List[float] = [self.prev_loss]

        # slow mode always scans the same pairs
        self._all_pairs = None
        if config.mode == "slow":
            self._all_pairs = admissible_chords(config.num_anchors, config.separation)

    # -----------------------------------------------------------------
    # Stages of one step: candidates -> score -> pick best -> apply
    # -----------------------------------------------------------------

    def candidates(self) -> List[Chord]:
        """Candidate chords for the next step, as (i, j) with i < j, sorted."""
        if self._all_pairs is not None:
            return self._all_pairs
        a = self.current
        partners = admissible_partners(a, self.config.num_anchors, self.config.separation)
        # partners are ascending, so the canonical pairs come out sorted too
        return [(j, a) if j < a else (a, j) for j in partners]

    def _scan(self, chunk: List[Chord], ceiling: float,
              cancelled: Optional[Callable[[], bool]] = None) -> _StepBest:
        best = _StepBest()
        limit = ceiling
        for chord in chunk:
            if cancelled is not None and cancelled():
                break
            mask = self.rasterizer.mask(*chord)
            if not mask.any():
                # touches no pixel of the region; accepting it would never end
                continue
            loss, ok = score(self.target, self.working, mask, limit)
            # strict < keeps the earliest pair on ties
            if ok and loss < best.loss:
                best.chord, best.loss = chord, loss
                limit = loss
        return best

    def _scan_chunks(self, pool, pairs, ceiling, cancelled) -> _StepBest:
        n_chunks = self.config.workers * 4
        step = math.ceil(len(pairs) / n_chunks)
        chunks = [pairs[k:k + step] for k in range(0, len(pairs), step)]
        results = list(pool.map(lambda c: self._scan(c, ceiling, cancelled), chunks))
        best = _StepBest()
        for r in results:
            if r.chord is not None and r.loss < best.loss:
                best.chord, best.loss = r.chord, r.loss
        return best

    def search_step(self, cancelled: Optional[Callable[[], bool]] = None, pool=None):
        """
        Returns (chord, loss) of the best admissible chord, or None when no
        chord keeps the loss within prev_loss + tolerance.

        With workers > 1 the candidates are scored on pool; run() passes one
        executor for the whole run, a standalone call makes its own.
        """
        pairs = self.candidates()
        if not pairs:
            return None
        ceiling = self.prev_loss + self.config.tolerance

        workers = self.config.workers
        if workers == 1 or len(pairs) < 2 * workers:
            best = self._scan(pairs, ceiling, cancelled)
        elif pool is not None:
            best = self._scan_chunks(pool, pairs, ceiling, cancelled)
        else:
            with ThreadPoolExecutor(max_workers=workers) as own_pool:
                best = self._scan_chunks(own_pool, pairs, ceiling, cancelled)

        if best.chord is None:
            return None
        return best.chord, best.loss

    def apply(self, chord: Chord, loss: float) -> Chord:
        """Adds the chord to the working grid and returns it as (from, to)."""
        i, j = chord
        self.working += self.rasterizer.mask(i, j)
        self.prev_loss = loss
        if self.config.mode == "fast":
            start = self.current
            end = j if i == start else i
            self.current = end
            placed = (start, end)
        else:
            placed = (i, j)
        self.chords.append(placed)
        self.losses.append(loss)
        return placed

    def step(self, cancelled: Optional[Callable[[], bool]] = None, pool=None) -> Optional[Chord]:
        found = self.search_step(cancelled, pool)
        if found is None:
            return None
        if cancelled is not None and cancelled():
            # the scan may have been cut short, so the pick is not trustworthy
            return None
        return self.apply(*found)

    # -----------------------------------------------------------------
    # Loop
    # -----------------------------------------------------------------

    def _stop_reason_for_empty_step(self) -> str:
        return "exhausted" if not self.candidates() else "stall"

    def run(self, sink=None, on_chord: Optional[Callable[[int, Chord, float], None]] = None) -> SelectionResult:
        """
        Runs until the loss stalls, no candidates remain, the sink closes, or
        max_chords is reached. With workers > 1 a single thread pool serves
        every step of the run.
        """
        if self.config.workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                reason = self._loop(sink, on_chord, pool)
        else:
            reason = self._loop(sink, on_chord, None)

        return SelectionResult(
            chords=list(self.chords),
            losses=list(self.losses),
            working=self.working.copy(),
            stop_reason=reason,
        )

    def _loop(self, sink, on_chord, pool) -> str:
        max_chords = self.config.max_chords
        cancelled = (lambda: not sink.is_open()) if sink is not None else None

        while True:
            if sink is not None and not sink.is_open():
                return "closed"
            if max_chords is not None and len(self.chords) >= max_chords:
                return "limit"

            placed = self.step(cancelled, pool)
            if placed is None:
                if sink is not None and not sink.is_open():
                    return "closed"
                return self._stop_reason_for_empty_step()

            if on_chord is not None:
                on_chord(len(self.chords), placed, self.prev_loss)

            if sink is not None:
                try:
                    sink.show(self.working)
                except Exception as e:
                    # a preview that can't refresh counts as a closed window
                    print(f"[string-art] preview update failed, stopping: {e!r}", flush=True)
                    return "closed"
