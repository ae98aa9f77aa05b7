"""Pipeline building blocks: tokens passed between stages and the stages themselves."""

from __future__ import annotations

import enum
from typing import Any, Callable, Optional


class TokenStatus(enum.Enum):
    """State of a token travelling through the pipeline."""

    DATA = "data"
    END = "end"


class Token:
    """Base for every object passed between pipeline stages."""

    def __init__(self, status: TokenStatus = TokenStatus.DATA) -> None:
        self.status = status

    def valid(self) -> bool:
        """True unless the token marks the end of the stream."""
        return self.status is not TokenStatus.END

    def mark_last(self, is_last: bool) -> None:
        """Mark this token as the final one of the stream when ``is_last`` is true."""
        if is_last:
            self.status = TokenStatus.END


class VoidToken(Token):
    """A token carrying no payload."""

    def __len__(self) -> int:
        return 0

    def clear(self) -> None:
        """Nothing to clear; present so the token behaves like a container."""


class Stage:
    """One step of the pipeline: accept an input, process it, put the output.

    ``accept`` and ``put`` are optional; when left out, the stage ignores them.
    """

    def __init__(
        self,
        stage_id: int,
        process: Callable[[Any], Any],
        accept: Optional[Callable[[Any], None]] = None,
        put: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self.stage_id = stage_id
        self.active = True
        self._process = process
        self._accept = accept
        self._put = put

    def accept(self, arg: Any) -> None:
        """Receive an input token."""
        if self._accept is not None:
            self._accept(arg)

    def process(self, arg: Any) -> Any:
        """Run the stage's core work on ``arg`` and return its result."""
        return self._process(arg)

    def put(self, arg: Any) -> None:
        """Hand an output token on."""
        if self._put is not None:
            self._put(arg)