"""Tests for the default task runner."""

from __future__ import annotations

import asyncio

import pytest

from dbscope.shared.core.tasks import BackgroundTasks


def test_requires_running_loop():
    async def work():
        return None

    with pytest.raises(RuntimeError, match="no running event loop"):
        BackgroundTasks()(work(), "orphan")


@pytest.mark.asyncio
async def test_drain_waits_for_spawned_tasks():
    tasks = BackgroundTasks()
    order = []

    async def child():
        await asyncio.sleep(0)
        order.append("child")

    async def parent():
        await asyncio.sleep(0)
        order.append("parent")
        tasks(child(), "child")

    tasks(parent(), "parent")
    await tasks.drain()

    assert order == ["parent", "child"]
    assert tasks.pending == 0


@pytest.mark.asyncio
async def test_cancel_all():
    tasks = BackgroundTasks()
    task = tasks(asyncio.sleep(10), "sleeper")

    tasks.cancel_all()
    await tasks.drain()

    assert task.cancelled()
