from __future__ import annotations

import asyncio
from typing import Optional


async def read_stdin_line(prompt: str) -> Optional[str]:
    """Read one line without blocking the event loop. Returns None at end of input."""
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


def write_stdout(text: str) -> None:
    print(text, flush=True)
