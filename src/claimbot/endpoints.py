import logging
import random
from collections.abc import Iterable, Iterator

from claimbot.errors import ConfigError

log = logging.getLogger("claimbot.endpoints")


class EndpointPool:
    """Interchangeable RPC endpoints in a random working order.

    The backing list never changes. ``shuffle()`` only replaces the order used
    for the next read failover scan and write pick. Failures are handled per
    call, nothing is ever pruned.
    """

    def __init__(self, endpoints: Iterable[str], *, rng: random.Random | None = None):
        self._endpoints: tuple[str, ...] = tuple(e.rstrip("/") for e in endpoints)
        if not self._endpoints:
            raise ConfigError("EndpointPool needs at least one endpoint")
        self._rng = rng or random.Random()
        self._order: list[str] = list(self._endpoints)
        self.shuffle()

    @property
    def endpoints(self) -> tuple[str, ...]:
        return self._endpoints

    @property
    def order(self) -> tuple[str, ...]:
        return tuple(self._order)

    def shuffle(self) -> None:
        order = list(self._endpoints)
        self._rng.shuffle(order)
        self._order = order
        log.debug("Endpoint order: %s", ", ".join(order))

    def sample(self) -> str:
        """One endpoint, uniformly at random, for a write."""
        return self._rng.choice(self._order)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._order))

    def __len__(self) -> int:
        return len(self._endpoints)
