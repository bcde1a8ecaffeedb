import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

import claimbot.constants as C
from claimbot.endpoints import EndpointPool
from claimbot.errors import EndpointUnavailable
from claimbot.rpc import ChainClient

log = logging.getLogger("claimbot.tables")

T = TypeVar("T")


class TableReader:
    """Exact-key table lookups with sequential failover across the pool."""

    def __init__(self, client: ChainClient, pool: EndpointPool, *, timeout: float = C.READ_TIMEOUT):
        self.client = client
        self.pool = pool
        self.timeout = timeout

    async def fetch_table(
        self,
        contract: str,
        table: str,
        scope: str,
        bound: str | int | None = None,
        index_position: int = 1,
        *,
        strict: bool = False,
    ) -> list[dict]:
        """Return the rows from the first endpoint that answers in time.

        Endpoints are tried in the pool's current order, each one raced
        against ``timeout``. Once one succeeds the rest are not queried. If
        they all fail, return ``[]``, or raise EndpointUnavailable when
        ``strict`` so callers can tell an outage from an empty table.
        """
        failures: list[str] = []
        for endpoint in self.pool.order:
            try:
                data = await asyncio.wait_for(
                    self.client.get_table_rows(
                        endpoint,
                        code=contract,
                        table=table,
                        scope=scope,
                        lower_bound=bound,
                        upper_bound=bound,
                        index_position=index_position,
                        limit=C.TABLE_LIMIT,
                    ),
                    timeout=self.timeout,
                )
            except TimeoutError:
                log.debug("%s/%s timed out on %s after %.1fs", contract, table, endpoint, self.timeout)
                failures.append(f"{endpoint}: timeout")
                continue
            except Exception as e:
                log.debug("%s/%s failed on %s: %s", contract, table, endpoint, e)
                failures.append(f"{endpoint}: {e}")
                continue

            rows = data.get("rows")
            if not isinstance(rows, list):
                log.debug("%s/%s: %s returned no rows field", contract, table, endpoint)
                failures.append(f"{endpoint}: malformed response")
                continue
            return rows

        log.warning("Could not read %s/%s (scope %s) from any of %d endpoints", contract, table, scope, len(failures))
        if strict:
            raise EndpointUnavailable(None, f"{contract}/{table} unreadable: " + "; ".join(failures))
        return []

    async def fetch_parsed(
        self,
        parse: Callable[[dict], T],
        contract: str,
        table: str,
        scope: str,
        bound: str | int | None = None,
        index_position: int = 1,
        *,
        strict: bool = True,
    ) -> list[T]:
        rows = await self.fetch_table(contract, table, scope, bound, index_position, strict=strict)
        return [parse(r) for r in rows]
