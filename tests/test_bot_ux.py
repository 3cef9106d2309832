"""Tests for bot UX - arena formatting, keyboards and handler flows."""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from chicken_duel.bot.app import create_dispatcher
from chicken_duel.bot.handlers.admin import cmd_issue, is_admin
from chicken_duel.bot.handlers.arena import (
    START_FIGHT,
    callback_select_side,
    callback_start_fight,
    cmd_history,
    cmd_login,
    get_side_keyboard,
    get_start_keyboard,
    run_fight,
)
from chicken_duel.bot.utils import format_arena_status, format_health_bar, format_outcome, format_side
from chicken_duel.config import Settings
from chicken_duel.db.models import Coupon, CouponStatus, DuelRecord
from chicken_duel.engine import DuelConfig, DuelOutcome, DuelPhase, Side
from chicken_duel.services import ArenaRegistry, CouponService, ResultService


def make_settings(**overrides) -> Settings:
    values = {
        "bot_token": "123:test",
        "database_url": "sqlite+aiosqlite:///:memory:",
        "admin_user_ids": "100",
    }
    values.update(overrides)
    return Settings(**values)


def make_message(text: str, user_id: int = 100) -> MagicMock:
    message = MagicMock()
    message.text = text
    message.from_user.id = user_id
    message.answer = AsyncMock()
    message.edit_text = AsyncMock()
    return message


def make_callback(data: str, user_id: int = 100) -> MagicMock:
    callback = MagicMock()
    callback.data = data
    callback.from_user.id = user_id
    callback.answer = AsyncMock()
    callback.message.edit_text = AsyncMock()
    callback.message.answer = AsyncMock()
    return callback


async def issue(session_factory, code: str = "CHICK42", player: str = "P-001") -> Coupon:
    async with session_factory() as session:
        coupon = await CouponService(session).issue_coupon(code, player)
        await session.commit()
    return coupon


class TestFormatting:
    """Tests for arena message formatting."""

    def test_format_side(self):
        assert format_side("red") == "🔴 RED"
        assert format_side("blue") == "🔵 BLUE"
        assert format_side("green") == "GREEN"

    @pytest.mark.parametrize(
        "health,expected",
        [
            (100, "██████████ 100/100"),
            (60, "██████░░░░ 60/100"),
            (1, "█░░░░░░░░░ 1/100"),
            (0, "░░░░░░░░░░ 0/100"),
            (150, "██████████ 100/100"),
        ],
    )
    def test_health_bar(self, health, expected):
        assert format_health_bar(health, 100) == expected

    def test_arena_status(self):
        state = {
            "player_choice": "blue",
            "first_turn": "red",
            "fighters": [
                {"side": "red", "health": 70, "max_health": 100, "is_attacking": True},
                {"side": "blue", "health": 100, "max_health": 100, "is_attacking": False},
            ],
        }

        text = format_arena_status(state)

        assert "You back the <b>🔵 BLUE</b> chicken." in text
        assert "First attack: <b>🔴 RED</b>" in text
        assert "🔴 RED ⚔️" in text
        assert "70/100" in text

    def test_outcome_win(self):
        outcome = DuelOutcome(winner=Side.RED, player_choice=Side.RED, player_won=True, reward=5000)
        text = format_outcome(outcome)
        assert "🔴 RED" in text
        assert "YOU WIN <b>Rp 5,000</b>!" in text

    def test_outcome_loss(self):
        outcome = DuelOutcome(winner=Side.RED, player_choice=Side.BLUE, player_won=False, reward=0)
        assert "You lose" in format_outcome(outcome)


class TestKeyboards:
    """Tests for inline keyboards."""

    def test_side_keyboard(self):
        buttons = get_side_keyboard().inline_keyboard[0]
        assert [b.callback_data for b in buttons] == ["side:red", "side:blue"]

    def test_start_keyboard(self):
        rows = get_start_keyboard().inline_keyboard
        assert rows[0][0].callback_data == START_FIGHT
        assert [b.callback_data for b in rows[1]] == ["side:red", "side:blue"]


class TestLoginHandler:
    """Tests for the /login flow."""

    async def test_login_with_valid_coupon(self, session_factory):
        await issue(session_factory)
        arena = ArenaRegistry(DuelConfig())
        message = make_message("/login chick42 p-001")

        await cmd_login(message, arena=arena, session_factory=session_factory)

        assert arena.get(100) is not None
        assert "accepted" in message.answer.call_args.args[0]

    async def test_login_with_used_coupon(self, session_factory):
        coupon = await issue(session_factory)
        async with session_factory() as session:
            await CouponService(session).record_result(coupon.id, reward=0)
            await session.commit()
        arena = ArenaRegistry(DuelConfig())
        message = make_message("/login CHICK42 P-001")

        await cmd_login(message, arena=arena, session_factory=session_factory)

        assert arena.get(100) is None
        assert "already been used" in message.answer.call_args.args[0]

    async def test_login_with_wrong_player(self, session_factory):
        await issue(session_factory)
        arena = ArenaRegistry(DuelConfig())
        message = make_message("/login CHICK42 P-404")

        await cmd_login(message, arena=arena, session_factory=session_factory)

        assert arena.get(100) is None
        assert "Invalid coupon" in message.answer.call_args.args[0]

    async def test_login_usage(self, session_factory):
        arena = ArenaRegistry(DuelConfig())
        message = make_message("/login CHICK42")

        await cmd_login(message, arena=arena, session_factory=session_factory)

        assert "Usage" in message.answer.call_args.args[0]


class TestFightHandlers:
    """Tests for side selection and the fight itself."""

    async def test_select_side(self):
        arena = ArenaRegistry(DuelConfig())
        arena.login(telegram_user_id=100, coupon_id=1, coupon_code="CHICK42", player_code="P-001")
        callback = make_callback("side:blue")

        await callback_select_side(callback, arena=arena)

        assert arena.get(100).engine.duel.player_choice is Side.BLUE
        callback.message.edit_text.assert_awaited_once()

    async def test_select_side_without_login(self):
        callback = make_callback("side:red")

        await callback_select_side(callback, arena=ArenaRegistry(DuelConfig()))

        assert callback.answer.call_args.kwargs["show_alert"] is True

    async def test_start_without_side(self, session_factory):
        """Test the start button refuses until a fighter is chosen."""
        arena = ArenaRegistry(DuelConfig())
        arena.login(telegram_user_id=100, coupon_id=1, coupon_code="CHICK42", player_code="P-001")
        callback = make_callback(START_FIGHT)

        await callback_start_fight(callback, arena=arena, session_factory=session_factory, settings=make_settings())

        assert callback.answer.call_args.args[0] == "Please select a fighter!"
        assert arena.get(100).task is None

    async def test_run_fight_saves_result(self, session_factory, fast_config):
        """Test a full fight spends the coupon, stores the duel and frees the session."""
        coupon = await issue(session_factory)
        arena = ArenaRegistry(fast_config, rng=random.Random(11))
        arena.login(telegram_user_id=100, coupon_id=coupon.id, coupon_code=coupon.code, player_code="P-001")
        arena.select_side(100, Side.RED)
        session = arena.get(100)
        message = make_message("")
        settings = make_settings(frame_rate=200, status_refresh_seconds=0.01)

        await asyncio.wait_for(run_fight(message, session, arena, session_factory, settings), timeout=15)

        final_text = message.edit_text.call_args.args[0]
        assert "Winner" in final_text
        message.answer.assert_not_called()
        assert arena.get(100) is None
        assert not arena.is_settled(coupon.id)

        async with session_factory() as db:
            stored = await db.get(Coupon, coupon.id)
            assert stored.status == CouponStatus.USED
            assert stored.reward == session.engine.duel.result.reward
            records = (await db.execute(select(DuelRecord))).scalars().all()
            assert len(records) == 1
            assert records[0].combat_log["entries"]

    async def test_failed_save_keeps_coupon_locked(self, session_factory, fast_config, monkeypatch):
        """Test a coupon whose result couldn't be stored can't buy a second duel."""
        coupon = await issue(session_factory)
        arena = ArenaRegistry(fast_config, rng=random.Random(11))
        arena.login(telegram_user_id=100, coupon_id=coupon.id, coupon_code=coupon.code, player_code="P-001")
        arena.select_side(100, Side.RED)
        session = arena.get(100)
        monkeypatch.setattr(ResultService, "save_duel", AsyncMock(side_effect=RuntimeError("database down")))
        message = make_message("")
        settings = make_settings(frame_rate=200, status_refresh_seconds=0.01)

        await asyncio.wait_for(run_fight(message, session, arena, session_factory, settings), timeout=15)

        assert "could not be saved" in message.answer.call_args.args[0]
        assert arena.get(100) is session

        retry = make_message("/login CHICK42 P-001")
        await cmd_login(retry, arena=arena, session_factory=session_factory)

        assert "already been used" in retry.answer.call_args.args[0]
        assert arena.get(100) is session
        assert session.engine.phase is DuelPhase.CONCLUDED

    async def test_double_click_starts_one_fight(self, session_factory, fast_config):
        """Test two overlapping start presses run a single duel."""
        coupon = await issue(session_factory)
        arena = ArenaRegistry(fast_config, rng=random.Random(11))
        arena.login(telegram_user_id=100, coupon_id=coupon.id, coupon_code=coupon.code, player_code="P-001")
        arena.select_side(100, Side.RED)
        session = arena.get(100)
        settings = make_settings(frame_rate=200, status_refresh_seconds=0.01)

        async def slow_answer(*args, **kwargs):
            await asyncio.sleep(0)

        first, second = make_callback(START_FIGHT), make_callback(START_FIGHT)
        for callback in (first, second):
            callback.answer = AsyncMock(side_effect=slow_answer)

        await asyncio.gather(
            callback_start_fight(first, arena=arena, session_factory=session_factory, settings=settings),
            callback_start_fight(second, arena=arena, session_factory=session_factory, settings=settings),
        )
        task = session.task
        try:
            assert session.is_running
            assert session.engine.phase is DuelPhase.FIGHTING
            assert second.answer.call_args.args[0] == "This fight has already started."
            second.message.edit_text.assert_not_called()

            relogin = arena.login(
                telegram_user_id=100, coupon_id=coupon.id, coupon_code=coupon.code, player_code="P-001"
            )
            assert not relogin.success
            assert arena.get(100) is session
        finally:
            await asyncio.wait_for(task, timeout=15)

        assert task.exception() is None
        assert arena.get(100) is None

    async def test_history(self, session_factory):
        message = make_message("/history")
        await cmd_history(message, session_factory=session_factory)
        assert "haven't fought" in message.answer.call_args.args[0]


class TestAdmin:
    """Tests for admin coupon issuing."""

    def test_is_admin(self):
        settings = make_settings(admin_user_ids="100, 200")
        assert is_admin(100, settings)
        assert is_admin(200, settings)
        assert not is_admin(300, settings)

    async def test_issue_coupon(self, session_factory):
        message = make_message("/issue gold7 p-009")

        await cmd_issue(message, session_factory=session_factory, settings=make_settings())

        assert "issued" in message.answer.call_args.args[0]
        async with session_factory() as session:
            assert (await CouponService(session).check_coupon("GOLD7", "P-009")).is_valid

    async def test_issue_requires_admin(self, session_factory):
        message = make_message("/issue gold7 p-009", user_id=555)

        await cmd_issue(message, session_factory=session_factory, settings=make_settings())

        assert "administrators" in message.answer.call_args.args[0]


class TestDispatcher:
    """Tests for dispatcher wiring."""

    def test_shared_dependencies(self, session_factory):
        settings = make_settings(damage_min=7, damage_max=9)

        dp = create_dispatcher(settings, session_factory)

        assert dp["settings"] is settings
        assert dp["session_factory"] is session_factory
        arena = dp["arena"]
        assert isinstance(arena, ArenaRegistry)
        assert arena.config.damage_min == 7
        assert arena.config.damage_max == 9
