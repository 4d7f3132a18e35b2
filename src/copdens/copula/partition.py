"""
# Ordered partition of the copula margins
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

logger = logging.getLogger(__name__)


class Family(IntEnum):
    """
    The distributional family of a margin. The integer values define the fixed order
    of the margins in every latent vector.
    """

    NORMAL = 0
    BERNOULLI = 1
    POISSON = 2

    @property
    def is_discrete(self) -> bool:
        """`True` for margins whose latent value is bounded rather than observed."""
        return self is not Family.NORMAL


@dataclass(frozen=True)
class MarginBlock:
    """A contiguous block of latent coordinates belonging to one family."""

    family: Family
    start: int
    size: int

    @property
    def stop(self) -> int:
        return self.start + self.size

    @property
    def slice(self) -> slice:
        return slice(self.start, self.stop)


@dataclass(frozen=True)
class MarginPartition:
    """
    Counts of normal, Bernoulli and Poisson margins and the resulting coordinate
    blocks.

    The latent coordinates are always ordered as
    ``[normal margins][Bernoulli margins][Poisson margins]``. Families without
    margins do not get a block.

    Parameters
    ----------
    n_normal
        Number of normal margins.
    n_bernoulli
        Number of Bernoulli margins.
    n_poisson
        Number of Poisson margins.

    Examples
    --------
    >>> partition = MarginPartition(2, 0, 1)
    >>> partition.n_margins
    3
    >>> [(block.family.name, block.start, block.size) for block in partition.blocks]
    [('NORMAL', 0, 2), ('POISSON', 2, 1)]
    """

    n_normal: int
    n_bernoulli: int
    n_poisson: int
    blocks: tuple[MarginBlock, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        counts = self.counts
        for family, count in zip(Family, counts):
            if count < 0:
                raise ValueError(
                    f"The number of {family.name.lower()} margins must be >= 0, "
                    f"found {count}."
                )

        blocks = []
        start = 0
        for family, count in zip(Family, counts):
            if count > 0:
                blocks.append(MarginBlock(family, start, count))
                start += count

        object.__setattr__(self, "blocks", tuple(blocks))
        logger.debug(f"Built {self!r} with blocks {self.blocks}")

    @classmethod
    def from_counts(cls, counts: Sequence[int]) -> MarginPartition:
        """Builds a partition from the sequence ``[Jn, Jb, Jp]``."""
        if len(counts) != len(Family):
            raise ValueError(
                f"Expected {len(Family)} margin counts, found {len(counts)}."
            )
        return cls(*(int(count) for count in counts))

    @property
    def counts(self) -> tuple[int, int, int]:
        return (self.n_normal, self.n_bernoulli, self.n_poisson)

    @property
    def n_margins(self) -> int:
        """The total number of margins, i.e. the dimension of the latent vector."""
        return sum(self.counts)

    @property
    def n_discrete(self) -> int:
        """The number of discrete margins, i.e. of auxiliary uniforms."""
        return self.n_bernoulli + self.n_poisson

    def slice(self, family: Family) -> slice:
        """
        The coordinates of a family. Empty if the family has no margins, so that
        indexing with the slice always succeeds.
        """
        start = sum(self.counts[: int(family)])
        return slice(start, start + self.counts[int(family)])

    def families(self) -> list[Family]:
        """The family of every latent coordinate, in order."""
        return [block.family for block in self.blocks for _ in range(block.size)]
