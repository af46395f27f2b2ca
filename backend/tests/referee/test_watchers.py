"""Tests for the UNO and missing UNO watchers"""

import asyncio
import pytest
from referee.messages import Command
from referee.watchers import UnoWatcher, MissingUnoWatcher
from .utils import (
    create_test_game, set_table, set_current_player, clear_space, messages_for,
    red, blue, green, assert_player_hand_size, assert_card_count_conserved
)


@pytest.fixture
def game():
    game = create_test_game()
    set_table(game, red("7"), {"A": [red("3")], "B": [blue("1"), blue("2")],
                               "C": [green("1"), green("2")]})
    clear_space(game)
    return game


def uno_notices(game, player_id):
    return [m for m in messages_for(game, player_id, Command.UNO) if len(m) == 3]


def missing_uno_notices(game, player_id):
    return [m for m in messages_for(game, player_id, Command.UNO) if len(m) == 4]


class TestUnoCall:
    """Test accepting and ignoring UNO calls"""

    @pytest.mark.asyncio
    async def test_uno_accepted_after_action_with_one_card(self, game):
        game.state.turn_action_taken = True

        assert await UnoWatcher(game).check_uno("A")

        assert game.state.uno_called
        for player_id in game.player_ids:
            assert uno_notices(game, player_id) == [(player_id, Command.UNO, "A")]

    @pytest.mark.asyncio
    async def test_uno_before_action_ignored(self, game):
        assert not await UnoWatcher(game).check_uno("A")

        assert not game.state.uno_called
        assert not uno_notices(game, "B")

    @pytest.mark.asyncio
    async def test_uno_from_other_player_ignored(self, game):
        game.state.turn_action_taken = True
        game.hands["B"] = [blue("1")]

        assert not await UnoWatcher(game).check_uno("B")
        assert not game.state.uno_called

    @pytest.mark.asyncio
    async def test_uno_with_two_cards_ignored(self, game):
        game.state.turn_action_taken = True
        set_current_player(game, 1)

        assert not await UnoWatcher(game).check_uno("B")
        assert not game.state.uno_called

    @pytest.mark.asyncio
    async def test_repeated_uno_is_noop(self, game):
        game.state.turn_action_taken = True
        watcher = UnoWatcher(game)

        assert await watcher.check_uno("A")
        assert not await watcher.check_uno("A")

        assert len(uno_notices(game, "C")) == 1

    @pytest.mark.asyncio
    async def test_watcher_loop_handles_messages(self, game):
        game.state.turn_action_taken = True
        task = asyncio.create_task(UnoWatcher(game).run())

        game.space.put("A", Command.UNO)
        await asyncio.sleep(0.01)

        assert game.state.uno_called
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_watcher_stops_after_game_over(self, game):
        game.state.turn_action_taken = True
        task = asyncio.create_task(UnoWatcher(game).run())
        await asyncio.sleep(0)

        game.state.game_over = True
        game.space.put("A", Command.UNO)
        await asyncio.wait_for(task, 1)

        assert not game.state.uno_called


class TestMissingUno:
    """Test missing UNO accusations"""

    @pytest.mark.asyncio
    async def test_accusation_penalizes_previous_player(self, game):
        game.state.previous_player_index = 0
        set_current_player(game, 1)
        game.state.missing_uno_window_open = True

        assert await MissingUnoWatcher(game).check_missing_uno("C")

        assert_player_hand_size(game, "A", 2)
        assert not game.state.missing_uno_window_open
        for player_id in game.player_ids:
            assert missing_uno_notices(game, player_id) == [
                (player_id, Command.UNO, "A", "C")]
        assert messages_for(game, "B", Command.BOARD)
        assert_card_count_conserved(game)

    @pytest.mark.asyncio
    async def test_second_accusation_is_noop(self, game):
        game.state.previous_player_index = 0
        set_current_player(game, 1)
        game.state.missing_uno_window_open = True
        watcher = MissingUnoWatcher(game)

        assert await watcher.check_missing_uno("C")
        assert not await watcher.check_missing_uno("B")

        assert_player_hand_size(game, "A", 2)
        assert len(missing_uno_notices(game, "A")) == 1

    @pytest.mark.asyncio
    async def test_closed_window_is_noop(self, game):
        game.state.previous_player_index = 0
        set_current_player(game, 1)

        assert not await MissingUnoWatcher(game).check_missing_uno("C")

        assert_player_hand_size(game, "A", 1)
        assert not missing_uno_notices(game, "C")

    @pytest.mark.asyncio
    async def test_accusation_from_stranger_ignored(self, game):
        game.state.previous_player_index = 0
        set_current_player(game, 1)
        game.state.missing_uno_window_open = True

        assert not await MissingUnoWatcher(game).check_missing_uno("Z")

        assert game.state.missing_uno_window_open
        assert_player_hand_size(game, "A", 1)

    @pytest.mark.asyncio
    async def test_board_sent_after_notice_delay(self, game):
        game.config.missing_uno_notice_delay = 0.05
        game.state.previous_player_index = 0
        set_current_player(game, 1)
        game.state.missing_uno_window_open = True

        task = asyncio.create_task(MissingUnoWatcher(game).check_missing_uno("C"))
        await asyncio.sleep(0.01)

        assert missing_uno_notices(game, "B")
        assert not messages_for(game, "B", Command.BOARD)
        # The lock is free during the pause
        assert not game.lock.locked()

        assert await asyncio.wait_for(task, 1)
        assert messages_for(game, "B", Command.BOARD)
