"""Tests for AsyncActionGroup composition."""

from __future__ import annotations

import asyncio

import pytest

from asyncaction import ActionOptions, ActionStatus, AsyncActionController, AsyncActionGroup

from .conftest import Gate


async def save_project(project_id: str) -> str:
    return f"saved {project_id}"


async def delete_project(project_id: str) -> str:
    raise PermissionError(f"cannot delete {project_id}")


class TestMembers:
    def test_members_are_controllers_keyed_by_name(self) -> None:
        group = AsyncActionGroup({"save": save_project, "delete": delete_project})

        assert group.names == ("save", "delete")
        assert len(group) == 2
        assert "save" in group and "share" not in group
        assert list(group) == ["save", "delete"]
        assert isinstance(group["save"], AsyncActionController)
        assert group.save is group["save"]
        assert group.save.name == "save"

    def test_unknown_member_access(self) -> None:
        group = AsyncActionGroup({"save": save_project})

        with pytest.raises(KeyError):
            group["share"]
        with pytest.raises(AttributeError, match="share"):
            group.share
        with pytest.raises(AttributeError):
            group._private

    def test_membership_is_read_only(self) -> None:
        group = AsyncActionGroup({"save": save_project})
        with pytest.raises(TypeError):
            group.controllers["share"] = group.save  # type: ignore[index]

    def test_shared_options_apply_to_every_member(self) -> None:
        group = AsyncActionGroup(
            {"save": save_project, "delete": delete_project},
            ActionOptions(name="project"),
            timeout=15.0,
            prevent_duplicate_calls=True,
        )

        for controller in group.controllers.values():
            assert controller.options.timeout == 15.0
            assert controller.options.prevent_duplicate_calls
        assert group.save.name == "project.save"
        assert group.delete.name == "project.delete"


class TestAggregateState:
    @pytest.mark.asyncio
    async def test_any_running_tracks_members(self, gate: Gate) -> None:
        other = Gate()
        group = AsyncActionGroup({"save": gate, "share": other})
        flips: list[bool] = []
        group.subscribe(flips.append)
        assert not group.any_running

        saving = group.save.execute("p-1")
        sharing = group.share.execute("p-1")
        await asyncio.sleep(0)
        assert group.any_running and group.any_loading
        assert group.running_names == ("save", "share")

        gate.release()
        assert await saving == "p-1"
        assert group.any_running
        assert group.running_names == ("share",)

        other.release()
        assert await sharing == "p-1"
        assert not group.any_running
        assert flips == [True, False]

    @pytest.mark.asyncio
    async def test_failed_member_keeps_its_own_state(self) -> None:
        group = AsyncActionGroup({"save": save_project, "delete": delete_project}, on_error=lambda e: None)

        assert await group.save.execute("p-1") == "saved p-1"
        assert await group.delete.execute("p-1") is None

        assert group.save.status is ActionStatus.SUCCEEDED
        assert group.delete.status is ActionStatus.FAILED
        assert group.delete.error is not None
        assert group.delete.error.action == "delete"
        assert not group.any_running


class TestBulkOperations:
    @pytest.mark.asyncio
    async def test_cancel_all_leaves_nothing_in_flight(self, gate: Gate) -> None:
        other = Gate()
        group = AsyncActionGroup({"save": gate, "share": other})
        saving = group.save.execute()
        sharing = group.share.execute()
        await asyncio.sleep(0)

        group.cancel_all()

        assert not group.any_running
        assert all(not c.in_flight for c in group.controllers.values())
        assert all(c.status is ActionStatus.IDLE for c in group.controllers.values())
        assert await saving is None and await sharing is None
        assert gate.tokens[0].cancelled and other.tokens[0].cancelled  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_reset_all_clears_results(self) -> None:
        group = AsyncActionGroup({"save": save_project})
        await group.save.execute("p-1")

        group.reset_all()
        assert group.save.status is ActionStatus.IDLE
        assert group.save.result is None

    @pytest.mark.asyncio
    async def test_close_tears_down_members(self, gate: Gate) -> None:
        flips: list[bool] = []
        async with AsyncActionGroup({"save": gate}) as group:
            group.subscribe(flips.append)
            pending = group.save.execute()
            await asyncio.sleep(0)

        assert await pending is None
        assert group.save.closed
        assert group.save.status is ActionStatus.CANCELLED
        assert flips == [True]
        assert not group.any_running
        with pytest.raises(RuntimeError):
            group.save.execute()
        group.close()
