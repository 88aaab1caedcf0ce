#!/usr/bin/env python3
"""
Example: Headless prompt dispatch
Shows how to use TriggerAdapter without any UI.

This example demonstrates:
- Using TriggerAdapter with a custom async action sink
- Observing deliveries and delivery failures
- Toggling triggers and reloading configuration at runtime
"""

import asyncio

try:
    from filetrigger_core import TriggerAdapter
    from filetrigger_core.notifier import LoggingNotifier
except ImportError:
    print("Error: Install textual-filetrigger first: pip install textual-filetrigger")
    exit(1)


class PromptQueue:
    """
    Collect prompts for a downstream worker.

    Use case: forwarding prompts to an LLM client, a chat bot or a review queue.
    """

    def __init__(self):
        self.queue: asyncio.Queue[tuple[str, str]] = asyncio.Queue()

    async def deliver(self, key: str, prompt: str) -> None:
        """Action sink: may suspend, the scheduler keeps running meanwhile."""
        await self.queue.put((key, prompt))


async def consume(queue: PromptQueue) -> None:
    """Print prompts as they arrive."""
    while True:
        key, prompt = await queue.queue.get()
        print(f"\n▶ {key}\n{prompt.rstrip()}")


async def main():
    """Watch the workspace described by config.toml for one minute."""
    sink = PromptQueue()
    adapter = TriggerAdapter("config.toml", sink=sink, notifier=LoggingNotifier())
    adapter.on_delivery_failed = lambda failure: print(f"❌ {failure.describe()}")

    validation = adapter.validate_config()
    if validation.errors:
        print(f"❌ Config errors: {validation.errors}")
        return
    if validation.warnings:
        print(f"⚠️ Warnings: {validation.warnings}")
    print(f"✓ {validation.rules_loaded} rule(s), watching {adapter.root}")

    adapter.attach(asyncio.get_running_loop())
    consumer = asyncio.create_task(consume(sink))
    try:
        await asyncio.sleep(60)
    except KeyboardInterrupt:
        print("\n\n⚠️ Interrupted by user")
    finally:
        adapter.detach()
        await adapter.scheduler.wait_for_deliveries()
        consumer.cancel()


if __name__ == "__main__":
    asyncio.run(main())
