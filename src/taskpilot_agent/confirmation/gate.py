# taskpilot_agent/confirmation/gate.py
"""
Confirmation Gate - suspends a mutating action until a human decides.

Flow for request_confirmation(options):
1. Build an AIActionPreview through the ImpactAnalyzer.
2. If the impact does not require explicit confirmation, resolve True at once.
3. Otherwise hand a ConfirmationRequest to the host UI handler and wait for one
   of three outcomes: confirm (run on_confirm), cancel (run on_cancel) or
   alternative (run that alternative's action instead).

Requests on one gate are serialized: a second request waits until the first
is resolved. No exception raised by a callback escapes the gate.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from taskpilot_agent.confirmation.impact import ImpactAnalyzer
from taskpilot_agent.models.actions import (
    AlternativeAction,
    ConfirmationDecision,
    ConfirmationOptions,
    ConfirmationRequest,
)
from taskpilot_agent.models.enums import ConfirmationOutcome

logger = logging.getLogger(__name__)

ConfirmationHandler = Callable[[ConfirmationRequest], Awaitable["bool | ConfirmationDecision"]]


async def _call(callback: Callable[[], Any]) -> Any:
    """Run a sync or async callback."""
    result = callback()
    if inspect.isawaitable(result):
        result = await result
    return result


def _succeeded(result: Any) -> bool:
    """Interpret an action's return value as success/failure."""
    if result is None:
        return True
    if isinstance(result, bool):
        return result
    success = getattr(result, "success", None)
    if isinstance(success, bool):
        return success
    return True


class ConfirmationGate:
    """
    Blocking request/response channel between the agent and a human.

    The host UI registers a handler with ``set_handler``. Without a handler,
    requests that need explicit approval are denied.
    """

    def __init__(
        self,
        analyzer: ImpactAnalyzer | None = None,
        handler: ConfirmationHandler | None = None,
    ):
        self.analyzer = analyzer or ImpactAnalyzer()
        self._handler = handler
        self._lock = asyncio.Lock()
        self._last_outcome: ConfirmationOutcome | None = None

    def set_handler(self, handler: ConfirmationHandler | None) -> None:
        self._handler = handler

    @property
    def has_handler(self) -> bool:
        return self._handler is not None

    @property
    def pending(self) -> bool:
        """Whether a confirmation is currently in flight."""
        return self._lock.locked()

    @property
    def last_outcome(self) -> ConfirmationOutcome | None:
        """Outcome of the most recent explicit confirmation (None if auto-approved)."""
        return self._last_outcome

    def build_request(self, options: ConfirmationOptions) -> ConfirmationRequest:
        preview = self.analyzer.create_action_preview(
            title=options.title,
            description=options.description,
            changes=options.changes,
            reversible=options.reversible,
            impact=options.impact,
        )
        return ConfirmationRequest(
            options=options,
            preview=preview,
            level=self.analyzer.get_confirmation_level(preview.impact),
        )

    async def request_confirmation(self, options: ConfirmationOptions) -> bool:
        request = self.build_request(options)

        if not request.level.requires_explicit_confirmation:
            logger.debug(f"Auto-approved '{options.title}' ({request.preview.impact.value} impact)")
            self._last_outcome = None
            return True

        async with self._lock:
            decision = await self._ask(request)
            self._last_outcome = decision.outcome
            logger.info(f"Confirmation '{options.title}' resolved: {decision.outcome.value}")

            if decision.outcome == ConfirmationOutcome.CONFIRM:
                return await self._run_confirm(options)
            if decision.outcome == ConfirmationOutcome.ALTERNATIVE:
                alternative = self._find_alternative(options.alternatives, decision.alternative_id)
                if alternative is not None:
                    return await self._run_alternative(alternative)
                logger.warning(f"Unknown alternative '{decision.alternative_id}' for '{options.title}', treating as cancel")
            return await self._run_cancel(options)

    # --- Internals ---

    async def _ask(self, request: ConfirmationRequest) -> ConfirmationDecision:
        if self._handler is None:
            logger.warning(f"No confirmation handler registered; denying '{request.options.title}'")
            return ConfirmationDecision.cancel()

        try:
            answer = await self._handler(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Confirmation handler failed for '{request.options.title}': {e}")
            return ConfirmationDecision.cancel()

        if isinstance(answer, ConfirmationDecision):
            return answer
        return ConfirmationDecision.confirm() if answer else ConfirmationDecision.cancel()

    @staticmethod
    def _find_alternative(alternatives: list[AlternativeAction], alternative_id: str | None) -> AlternativeAction | None:
        for alternative in alternatives:
            if alternative.id == alternative_id:
                return alternative
        return None

    async def _run_confirm(self, options: ConfirmationOptions) -> bool:
        try:
            await _call(options.on_confirm)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"on_confirm failed for '{options.title}': {e}")
            return False
        return True

    async def _run_cancel(self, options: ConfirmationOptions) -> bool:
        if options.on_cancel is not None:
            try:
                await _call(options.on_cancel)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"on_cancel failed for '{options.title}': {e}")
        return False

    async def _run_alternative(self, alternative: AlternativeAction) -> bool:
        try:
            result = await _call(alternative.action)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Alternative '{alternative.id}' failed: {e}")
            return False
        return _succeeded(result)
