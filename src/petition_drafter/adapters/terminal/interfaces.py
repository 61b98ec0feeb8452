from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol

LineReader = Callable[[str], Awaitable[Optional[str]]]
LineWriter = Callable[[str], None]


class TerminalAdapter(Protocol):
    """
    A terminal entry point over one session variant.

    Input is read through an async line reader so the event loop keeps running while the user types.
    """

    async def run(self) -> None:
        """Run until the user quits or input ends."""
