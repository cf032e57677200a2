from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field

from mlc.asm_model import GeneratedLabel


class LabelAllocator:
    """Hands out generated label ids that are unique for the allocator's lifetime.

    Every function of a program ends up in one flat assembler namespace, so a
    single allocator is shared by all of them. Ids are unique across threads;
    no ordering is promised between concurrent callers.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)

    def new_label(self) -> GeneratedLabel:
        return GeneratedLabel(self.next_id())


@dataclass
class CompilationSession:
    labels: LabelAllocator = field(default_factory=LabelAllocator)

    def new_label(self) -> GeneratedLabel:
        return self.labels.new_label()
