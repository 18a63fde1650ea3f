# examples/01_task_turn.py
"""
🚀 QUICKSTART: One agent turn with a confirmation prompt

Runs two turns against an in-memory store with a scripted model, so no API
key is needed. Swap ``DemoModel`` for ``OpenAIChatModel()`` to talk to a
real endpoint (set TASKPILOT_MODEL_API_KEY first).
"""

import asyncio
import logging

from taskpilot_agent import (
    AppContext,
    ConfirmationDecision,
    ConfirmationGate,
    ContextAggregator,
    InMemoryTaskStore,
    Message,
    PermissionLevel,
    ReActLoop,
    ToolCallRequest,
    ToolExecutionLog,
    ToolRegistry,
    register_task_tools,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


class DemoModel:
    """Plays back canned replies in place of a language model."""

    def __init__(self, replies):
        self.replies = list(replies)

    async def invoke(self, messages, tools):
        return self.replies.pop(0)


async def ask_user(request):
    preview = request.preview
    print(f"\n⚠️  {preview.title} ({preview.impact.value} impact)")
    for change in preview.changes:
        print(f"   - {change.description}")
    print(f"   options: confirm / cancel / {' / '.join(request.alternative_ids)}")

    # A real UI would wait for a click here
    print("   -> user picks: archive")
    return ConfirmationDecision.alternative("archive")


async def main():
    store = InMemoryTaskStore()
    log = ToolExecutionLog()
    registry = ToolRegistry(permissions=[PermissionLevel.FULL_ACCESS], execution_log=log)
    register_task_tools(registry, store)

    model = DemoModel(
        [
            Message.assistant(tool_calls=[ToolCallRequest(name="create_task", args={"title": "Onboarding"})]),
            Message.assistant('Created "Onboarding".'),
            Message.assistant(tool_calls=[ToolCallRequest(name="delete_task", args={"task_reference": "onboarding"})]),
            Message.assistant(""),
        ]
    )
    loop = ReActLoop(model, registry, ConfirmationGate(handler=ask_user), ContextAggregator(store))

    print("📝 Turn 1: create a task")
    first = await loop.run("create a task called Onboarding", AppContext())
    print(f"✅ {first.status.value}: {first.message}")

    print("\n📝 Turn 2: delete it (needs confirmation)")
    second = await loop.run("delete my onboarding task", AppContext(), history=first.messages)
    print(f"✅ {second.status.value}: {second.message}")

    print("\n📊 Tool log:")
    for entry in log.get_recent_calls():
        print(f"   {entry.format_compact()}")
    print(f"\n🗂️  Tasks: {[(t.title, t.status.value) for t in await store.find_tasks()]}")


if __name__ == "__main__":
    asyncio.run(main())
