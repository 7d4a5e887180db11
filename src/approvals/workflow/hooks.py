"""Ordered post-commit hooks for best-effort side effects.

Side effects (emails, webhooks) run only after the authoritative state
transition has committed.  Each hook's failure is captured and logged; it
is never rolled back into the transition and never stops later hooks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger()

Hook = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class HookOutcome:
    """Result of running one post-commit hook.

    ``ok`` is False when the hook raised or returned ``False``.
    """

    name: str
    ok: bool
    error: str | None = None


class PostCommitHooks:
    """Collect named async callables and run them in registration order."""

    def __init__(self) -> None:
        self._hooks: list[tuple[str, Hook]] = []

    def add(self, name: str, hook: Hook) -> None:
        """Register *hook* under *name*."""
        self._hooks.append((name, hook))

    def __len__(self) -> int:
        return len(self._hooks)

    async def run(self) -> list[HookOutcome]:
        """Await every hook in order, capturing failures.

        Returns:
            One outcome per hook, in registration order.
        """
        outcomes: list[HookOutcome] = []
        for name, hook in self._hooks:
            try:
                result = await hook()
            except Exception as exc:
                logger.exception("post_commit_hook_failed", hook=name)
                outcomes.append(HookOutcome(name=name, ok=False, error=str(exc)))
                continue

            ok = _result_ok(result)
            if not ok:
                logger.warning("post_commit_hook_unsuccessful", hook=name, result=result)
            outcomes.append(HookOutcome(name=name, ok=ok))
        return outcomes


def _result_ok(result: Any) -> bool:
    if result is False:
        return False
    if isinstance(result, dict):
        return all(result.values())
    return True
