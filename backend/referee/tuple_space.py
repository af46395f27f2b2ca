"""
In-process tuple space used as the message bus between the referee loops
and the players.

Tuples are matched field by field against a pattern of the same length. A
pattern field is either an actual value (compared with ==) or a Formal, which
matches any value of the given type(s). Blocking operations suspend the
calling task until a matching tuple is put, the optional timeout expires or
the space is closed.
"""
import asyncio
import logging
from typing import Any, List, Optional, Tuple
from dataclasses import dataclass, field

from referee.errors import SpaceClosedError

logger = logging.getLogger(__name__)


class Formal:
    """Pattern field matching any value of the given type(s)"""

    def __init__(self, types: Any = object):
        self.types = types

    def matches(self, value: Any) -> bool:
        return isinstance(value, self.types)

    def __repr__(self) -> str:
        names = self.types if isinstance(self.types, tuple) else (self.types,)
        return f"Formal({', '.join(t.__name__ for t in names)})"


def matches(pattern: Tuple[Any, ...], fields: Tuple[Any, ...]) -> bool:
    """Check whether a tuple matches a pattern"""
    if len(pattern) != len(fields):
        return False
    for expected, actual in zip(pattern, fields):
        if isinstance(expected, Formal):
            if not expected.matches(actual):
                return False
        elif expected != actual:
            return False
    return True


@dataclass(eq=False)
class _Waiter:
    pattern: Tuple[Any, ...]
    future: asyncio.Future
    remove: bool = field(default=True)  # get removes, query only reads


class TupleSpace:
    """Associative message bus with Linda style operations"""

    def __init__(self, name: str = "space"):
        self.name = name
        self._tuples: List[Tuple[Any, ...]] = []
        self._waiters: List[_Waiter] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, *fields: Any) -> None:
        """Add a tuple, handing it straight to the oldest matching getter"""
        if self._closed:
            raise SpaceClosedError(f"Space {self.name} is closed")

        fields = tuple(fields)
        for waiter in list(self._waiters):
            if waiter.future.done() or not matches(waiter.pattern, fields):
                continue
            self._waiters.remove(waiter)
            waiter.future.set_result(fields)
            if waiter.remove:
                return

        self._tuples.append(fields)

    def getp(self, *pattern: Any) -> Optional[Tuple[Any, ...]]:
        """Remove and return the oldest matching tuple, or None"""
        index = self._find(pattern)
        if index is None:
            return None
        return self._tuples.pop(index)

    def queryp(self, *pattern: Any) -> Optional[Tuple[Any, ...]]:
        """Return the oldest matching tuple without removing it, or None"""
        index = self._find(pattern)
        if index is None:
            return None
        return self._tuples[index]

    async def get(self, *pattern: Any, timeout: Optional[float] = None) -> Tuple[Any, ...]:
        """Remove and return a matching tuple, waiting for one if needed"""
        found = self.getp(*pattern)
        if found is not None:
            return found
        return await self._wait(pattern, remove=True, timeout=timeout)

    async def query(self, *pattern: Any, timeout: Optional[float] = None) -> Tuple[Any, ...]:
        """Return a matching tuple without removing it, waiting if needed"""
        found = self.queryp(*pattern)
        if found is not None:
            return found
        return await self._wait(pattern, remove=False, timeout=timeout)

    def close(self) -> None:
        """Fail every blocked caller and refuse further puts.

        Tuples already in the space can still be read with the
        non-blocking operations and by get/query calls that match them.
        """
        if self._closed:
            return
        self._closed = True
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.future.done():
                waiter.future.set_exception(
                    SpaceClosedError(f"Space {self.name} is closed"))
        logger.debug(f"Closed space {self.name}, woke {len(waiters)} waiters")

    def size(self) -> int:
        return len(self._tuples)

    def snapshot(self) -> List[Tuple[Any, ...]]:
        return list(self._tuples)

    def _find(self, pattern: Tuple[Any, ...]) -> Optional[int]:
        for index, fields in enumerate(self._tuples):
            if matches(pattern, fields):
                return index
        return None

    async def _wait(self, pattern: Tuple[Any, ...], remove: bool, timeout: Optional[float]) -> Tuple[Any, ...]:
        if self._closed:
            raise SpaceClosedError(f"Space {self.name} is closed")

        future = asyncio.get_running_loop().create_future()
        waiter = _Waiter(tuple(pattern), future, remove)
        self._waiters.append(waiter)
        try:
            if timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout)
        except asyncio.CancelledError:
            # A tuple handed over just before cancellation goes back to the space
            if remove and future.done() and not future.cancelled() and future.exception() is None:
                self._tuples.insert(0, future.result())
            raise
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
