"""Async entry point for preparation inside an anyio-based supervisor.

Preparation blocks on subprocesses and disk I/O, so it runs in a worker
thread. Cancelling the awaiting task, including through ``anyio.fail_after``,
sets the preparable's cancellation event so a running toolchain is killed.
"""

import threading
from functools import partial
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

if TYPE_CHECKING:
    from ._protocol import Preparable


async def prepare_bin_async(preparable: "Preparable") -> bytes:  # noqa: UP037
    """Run ``preparable.prepare_bin()`` in a worker thread.

    Args:
        preparable: The workload to prepare.

    Returns:
        The output of ``prepare_bin()``.

    Raises:
        PrepareError: As raised by ``prepare_bin()``.
    """
    cancel = threading.Event()
    try:
        return await anyio.to_thread.run_sync(
            partial(preparable.prepare_bin, cancel=cancel),
            abandon_on_cancel=True,
        )
    except anyio.get_cancelled_exc_class():
        cancel.set()
        raise
