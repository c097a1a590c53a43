"""Selection of the preparable variant for a workload descriptor."""

from typing import TYPE_CHECKING

from ._bundle import BundlePreparable
from ._models import BundleWorkload, SourceWorkload
from ._source import SourcePreparable

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from procprep.config import PrepareSettings

    from ._protocol import ContainerFactory


def create_preparable(
    descriptor: SourceWorkload | BundleWorkload,
    *,
    settings: "PrepareSettings | None" = None,
    container_factory: "ContainerFactory | None" = None,
    logger: "FilteringBoundLogger | None" = None,
) -> SourcePreparable | BundlePreparable:
    """Create the preparable matching a descriptor's kind.

    Args:
        descriptor: A validated workload descriptor.
        settings: Preparation settings shared by all workloads.
        container_factory: Builds the lifecycle container for a spec.
        logger: Logger for preparation events.

    Returns:
        A SourcePreparable or BundlePreparable.

    Raises:
        TypeError: If the descriptor is neither kind.
    """
    if isinstance(descriptor, SourceWorkload):
        return SourcePreparable(
            descriptor,
            settings=settings,
            container_factory=container_factory,
            logger=logger,
        )
    if isinstance(descriptor, BundleWorkload):
        return BundlePreparable(
            descriptor,
            settings=settings,
            container_factory=container_factory,
            logger=logger,
        )
    msg = f"Unsupported workload descriptor: {type(descriptor).__name__}"
    raise TypeError(msg)
