# src/wbs_sync/core/state.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .ports import TeambitionAPI

ClientFactory = Callable[[str], TeambitionAPI]
# credential (cookie string) -> fresh API client for one run


@dataclass(slots=True)
class SyncContext:
    """
    Everything a sync run needs from the outside world.

    Built once by the composition root (cli.bootstrap) and handed to the
    coordinator; there is no module-level client or config.
    """

    project_url: str
    credential: str
    client_factory: ClientFactory

    manager_name: str = ""
    manager_id: str = ""

    batch_size: int = 20
    max_concurrent: int = 5
