# a11y_scout/collector/engine.py
"""Contract the test collector expects from an accessibility engine."""
from __future__ import annotations

from typing import Any, AsyncContextManager, List, Optional, Protocol, Sequence

from a11y_scout.collector.models import DomContext, EngineViolation


class AccessibilityEngine(Protocol):
    """Runs accessibility rules against a loaded page.

    ``open`` yields an engine-specific page handle that the other two calls
    receive back; the collector never inspects it.
    """

    def open(self, url: str) -> AsyncContextManager[Any]: ...

    async def run(
        self,
        page: Any,
        rules: Optional[Sequence[str]] = None,
        selectors: Optional[Sequence[str]] = None,
    ) -> List[EngineViolation]: ...

    async def extract_context(self, page: Any, selector: str, depth: int) -> DomContext: ...
