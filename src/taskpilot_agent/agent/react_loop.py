# taskpilot_agent/agent/react_loop.py
"""
Reasoning/Acting loop - the top-level controller for one user turn.

States:
    AwaitingModel -> (no tool calls) -> Done
    AwaitingModel -> ToolCallsRequested -> Executing(each call) -> AwaitingModel

The conversation is primed with a system message holding the serialized
EnhancedContext and the current time. Tool calls from one model response run
sequentially, in the order the model listed them, and every result is
appended as a ``tool`` message before the model is invoked again.

Mutating calls are described by the registry's plan builder and pass through
the ConfirmationGate; a declined confirmation yields a "cancelled by user"
result for that call only and the loop carries on.

Terminal outcomes: done, cap_exceeded, model_error, cancelled. Each produces
exactly one assistant-facing message that never contains internal error text.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from taskpilot_agent.agent.model import ModelClient
from taskpilot_agent.agent.prompts import (
    ASSISTANT_PROMPT,
    CANCELLED_MESSAGE,
    MODEL_ERROR_MESSAGE,
    build_system_message,
)
from taskpilot_agent.config import DEFAULT_MAX_ITERATIONS
from taskpilot_agent.confirmation.gate import ConfirmationGate
from taskpilot_agent.context.aggregator import ContextAggregator
from taskpilot_agent.context.intent import IntentClassifier
from taskpilot_agent.context.relevance import RelevanceScorer
from taskpilot_agent.models.actions import ActionChange, AlternativeAction, ConfirmationOptions
from taskpilot_agent.models.context import AppContext, ContextAggregationResult, Intent
from taskpilot_agent.models.enums import ActionChangeType, ActionImpact, ReActStepType, TurnStatus
from taskpilot_agent.models.messages import Message, ToolCallRequest
from taskpilot_agent.models.tools import AlternativeToolCall, ToolActionPlan, ToolExecutionResult
from taskpilot_agent.models.turn import ReActStep, TurnResult
from taskpilot_agent.tools.formatter import display_name
from taskpilot_agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def cap_exceeded_message(max_iterations: int, summary: str = "") -> str:
    message = f"I reached the limit of {max_iterations} reasoning steps for this request before finishing."
    if summary:
        message += f" Here is what I did so far:\n{summary}"
    return message


class _Turn:
    """Mutable bookkeeping for one run()."""

    def __init__(self, intent: Intent, context: ContextAggregationResult, conversation: list[Message]):
        self.intent = intent
        self.context = context
        self.conversation = conversation
        self.tool_results: list[ToolExecutionResult] = []
        self.steps: list[ReActStep] = []
        self.iterations = 0

    def step(self, step_type: ReActStepType, content: str = "", **kwargs: Any) -> None:
        self.steps.append(ReActStep(step_type=step_type, iteration=self.iterations, content=content, **kwargs))


class ReActLoop:
    """
    Drives model invocations and tool executions until a final answer.

    All collaborators are explicit instances created once at application
    start; one loop can serve many conversations.
    """

    def __init__(
        self,
        model: ModelClient,
        registry: ToolRegistry,
        gate: ConfirmationGate,
        aggregator: ContextAggregator,
        *,
        classifier: IntentClassifier | None = None,
        scorer: RelevanceScorer | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        system_prompt: str = ASSISTANT_PROMPT,
        auto_approve_tools: Iterable[str] = (),
        now: Callable[[], datetime] | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        self.model = model
        self.registry = registry
        self.gate = gate
        self.aggregator = aggregator
        self.classifier = classifier or aggregator.classifier
        self.scorer = scorer or aggregator.scorer
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt
        self.auto_approve_tools = frozenset(auto_approve_tools)
        self._now = now or (lambda: datetime.now().astimezone())

    async def run(
        self,
        user_message: str,
        base_context: AppContext,
        history: list[Message] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TurnResult:
        started = time.perf_counter()
        history = list(history or [])

        intent = self.classifier.extract_intent(user_message)
        context = await self.aggregator.build_enhanced_context(base_context, user_message, history, intent=intent)
        system = Message.system(build_system_message(context.enhanced_context, self._now(), self.system_prompt))

        turn = _Turn(intent, context, [*history, Message.user(user_message)])
        tools = self.registry.list()
        logger.info(f"Turn started: intent={intent.category.value} tools={len(tools)}")

        for iteration in range(1, self.max_iterations + 1):
            if self._cancelled(cancel_event):
                return self._finish(turn, TurnStatus.CANCELLED, CANCELLED_MESSAGE, started)
            turn.iterations = iteration

            # AwaitingModel
            model_started = time.perf_counter()
            try:
                reply = await self.model.invoke([system, *turn.conversation], tools)
                if not isinstance(reply, Message):
                    raise TypeError(f"model returned {type(reply).__name__}, expected Message")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Model invocation failed on iteration {iteration}: {e}")
                turn.step(ReActStepType.ERROR, "model invocation failed")
                return self._finish(turn, TurnStatus.MODEL_ERROR, MODEL_ERROR_MESSAGE, started)

            turn.conversation.append(reply)
            model_ms = (time.perf_counter() - model_started) * 1000

            if not reply.has_tool_calls:
                # Done
                answer = reply.content.strip() or self.registry.formatter.summarize_results(turn.tool_results)
                if not reply.content.strip():
                    turn.conversation[-1] = Message.assistant(answer)
                turn.step(ReActStepType.FINAL_ANSWER, answer, duration_ms=model_ms)
                return self._finish(turn, TurnStatus.DONE, answer, started)

            # ToolCallsRequested
            if reply.content:
                turn.step(ReActStepType.THOUGHT, reply.content, duration_ms=model_ms)
            if not await self._execute_round(turn, reply.tool_calls, cancel_event):
                return self._finish(turn, TurnStatus.CANCELLED, CANCELLED_MESSAGE, started)

        summary = self.registry.formatter.summarize_results(turn.tool_results) if turn.tool_results else ""
        logger.warning(f"Iteration cap ({self.max_iterations}) reached without a final answer")
        return self._finish(turn, TurnStatus.CAP_EXCEEDED, cap_exceeded_message(self.max_iterations, summary), started)

    # =========================================================================
    # Executing
    # =========================================================================

    async def _execute_round(
        self,
        turn: _Turn,
        calls: list[ToolCallRequest],
        cancel_event: asyncio.Event | None,
    ) -> bool:
        """Run one response's calls in order. Returns False if the turn was cancelled."""
        executed: dict[str, ToolExecutionResult] = {}

        for index, call in enumerate(calls):
            if self._cancelled(cancel_event):
                # Answer the outstanding calls so the history stays well-formed
                for pending in calls[index:]:
                    result = self.registry.cancelled_result(pending, "turn cancelled")
                    turn.conversation.append(Message.tool(result.to_tool_content(), pending.id, pending.name))
                return False

            if call.id in executed:
                # Duplicate correlation id: answer with the first result, run nothing
                logger.warning(f"Duplicate tool call id {call.id} ({call.name}); not executing again")
                first = executed[call.id]
                turn.step(ReActStepType.OBSERVATION, "duplicate call id", tool_call=call, tool_result=first)
                turn.conversation.append(Message.tool(first.to_tool_content(), call.id, call.name))
                continue

            turn.step(ReActStepType.ACTION, f"{call.name}({call.args})", tool_call=call)
            call_started = time.perf_counter()
            result = await self.execute_tool_call(call)
            elapsed = (time.perf_counter() - call_started) * 1000

            executed[call.id] = result
            turn.tool_results.append(result)
            turn.step(ReActStepType.OBSERVATION, result.user_message, tool_call=call, tool_result=result, duration_ms=elapsed)
            turn.conversation.append(Message.tool(result.to_tool_content(), call.id, call.name))

        return True

    async def execute_tool_call(self, call: ToolCallRequest) -> ToolExecutionResult:
        """Execute one call, routing mutating tools through the confirmation gate."""
        # Unknown, invalid and unauthorized calls fail without asking anyone
        if self.registry.preflight(call.name, call.args) is not None:
            return await self.registry.execute_call(call)

        if not self.registry.is_mutating(call.name) or call.name in self.auto_approve_tools:
            return await self.registry.execute_call(call)

        try:
            plan = await self.registry.describe(call)
        except Exception as e:
            return self.registry.error_result(call, e)

        impact: ActionImpact | None = None
        if plan is None:
            # Undescribed mutation: always ask
            plan = self._generic_plan(call)
            impact = ActionImpact.MEDIUM

        outcome: list[ToolExecutionResult] = []

        async def on_confirm() -> ToolExecutionResult:
            result = await self.registry.execute_call(call)
            outcome.append(result)
            return result

        options = ConfirmationOptions(
            title=plan.title,
            description=plan.description,
            changes=plan.changes,
            reversible=plan.reversible,
            on_confirm=on_confirm,
            alternatives=[self._alternative(alt, outcome) for alt in plan.alternatives],
            impact=impact,
        )
        approved = await self.gate.request_confirmation(options)

        if outcome:
            # on_confirm or an alternative ran
            return outcome[-1]
        if approved:
            # Auto-approved: the gate did not run anything
            return await self.registry.execute_call(call)

        logger.info(f"Tool call {call.name} cancelled by user")
        return self.registry.cancelled_result(call, plan.title)

    def _alternative(self, alt: AlternativeToolCall, outcome: list[ToolExecutionResult]) -> AlternativeAction:
        async def action() -> ToolExecutionResult:
            result = await self.registry.execute(alt.tool_name, alt.args)
            outcome.append(result)
            return result

        return AlternativeAction(id=alt.id, label=alt.label, description=alt.description, action=action)

    @staticmethod
    def _generic_plan(call: ToolCallRequest) -> ToolActionPlan:
        name = display_name(call.name)
        return ToolActionPlan(
            title=name,
            description=f"Run {call.name}",
            changes=[
                ActionChange(
                    type=ActionChangeType.UPDATE,
                    target=name,
                    new_value=call.args,
                    description=f"Run {call.name} with {call.args}",
                )
            ],
        )

    # =========================================================================
    # Termination
    # =========================================================================

    @staticmethod
    def _cancelled(cancel_event: asyncio.Event | None) -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def _finish(self, turn: _Turn, status: TurnStatus, message: str, started: float) -> TurnResult:
        # Relevance is annotated on the final context for observability
        context = turn.context.model_copy(
            update={"relevance_score": self.scorer.score(turn.context.enhanced_context, turn.intent)}
        )
        if status != TurnStatus.DONE:
            turn.conversation.append(Message.assistant(message))

        elapsed = (time.perf_counter() - started) * 1000
        logger.info(
            f"Turn finished: status={status.value} iterations={turn.iterations} "
            f"tool_calls={len(turn.tool_results)} in {elapsed:.0f}ms"
        )
        return TurnResult(
            message=message,
            status=status,
            iterations=turn.iterations,
            messages=turn.conversation,
            tool_results=turn.tool_results,
            steps=turn.steps,
            intent=turn.intent,
            context=context,
        )
