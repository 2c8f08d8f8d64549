# src/drillboard/core/state.py

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..reports.summary import SummaryService
from ..tasks.task_store import TaskBoard


@dataclass
class AppState:
    # Settings are kept on the state so handlers don't re-read config.
    settings: Any

    board: TaskBoard
    summary: SummaryService

    clock: Callable[[], float] = field(default=time.time)
