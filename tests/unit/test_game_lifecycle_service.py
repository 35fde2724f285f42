"""
Game Lifecycle Service Unit Tests
Tests creation, joining, starting, round advancement, game end and deletion.
"""

import pytest

from src.core.errors import (
    ConflictError, ErrorCode, ForbiddenError, InvalidPhaseError, NotFoundError, ValidationError
)
from src.core.game_phases import GameStatus
from tests.helpers.game_helpers import admin, answer_id_for, play_round, player, start_game


class TestCreateGame:

    def test_admin_creates_and_joins(self, game_manager):
        game = game_manager.create_game(admin('p1'), total_rounds=4, display_name='Alice')

        assert game['status'] == 'lobby'
        assert game['total_rounds'] == 4
        assert game['end_mode'] == 'rounds'
        assert game['created_by'] == 'p1'
        assert game['players'] == [{'user_id': 'p1', 'display_name': 'Alice', 'turn_order': 1, 'score': 0}]

    def test_default_round_count(self, game_manager):
        game = game_manager.create_game(admin('p1'))
        assert game['total_rounds'] == 10

    def test_non_admin_rejected(self, game_manager):
        with pytest.raises(ForbiddenError) as exc_info:
            game_manager.create_game(player('p1'))
        assert exc_info.value.code == ErrorCode.ADMIN_REQUIRED

    @pytest.mark.parametrize('settings', [
        {'total_rounds': 0},
        {'total_rounds': 'many'},
        {'end_mode': 'forever'},
        {'end_mode': 'points'},
        {'end_mode': 'points', 'target_points': 0},
    ])
    def test_invalid_settings(self, game_manager, settings):
        with pytest.raises(ValidationError) as exc_info:
            game_manager.create_game(admin('p1'), **settings)
        assert exc_info.value.code == ErrorCode.INVALID_GAME_SETTINGS

    def test_points_mode(self, game_manager):
        game = game_manager.create_game(admin('p1'), end_mode='points', target_points=10)
        assert game['end_mode'] == 'points'
        assert game['target_points'] == 10

    def test_list_games_shows_open_games(self, game_manager):
        first = game_manager.create_game(admin('p1'))
        second = game_manager.create_game(admin('p1'))
        assert {g['id'] for g in game_manager.list_games()} == {first['id'], second['id']}


class TestJoinAndLeave:

    def setup_method(self):
        self.creator = admin('p1')

    def test_join_assigns_turn_order(self, game_manager):
        game = game_manager.create_game(self.creator)
        result = game_manager.join_game(game['id'], player('p2'), 'Bob')

        assert result['joined'] is True
        assert result['participant']['turn_order'] == 2
        assert game_manager.get_game(game['id'])['player_count'] == 2

    def test_join_twice_is_harmless(self, game_manager):
        game = game_manager.create_game(self.creator)
        game_manager.join_game(game['id'], player('p2'))
        result = game_manager.join_game(game['id'], player('p2'))

        assert result['joined'] is False
        assert game_manager.get_game(game['id'])['player_count'] == 2

    def test_join_unknown_game(self, game_manager):
        with pytest.raises(NotFoundError) as exc_info:
            game_manager.join_game(404, player('p2'))
        assert exc_info.value.code == ErrorCode.GAME_NOT_FOUND

    def test_join_started_game(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2'])
        with pytest.raises(InvalidPhaseError) as exc_info:
            game_manager.join_game(game_id, player('p3'))
        assert exc_info.value.code == ErrorCode.WRONG_GAME_STATUS

    def test_leave(self, game_manager):
        game = game_manager.create_game(self.creator)
        game_manager.join_game(game['id'], player('p2'))
        game_manager.join_game(game['id'], player('p3'))

        game_manager.leave_game(game['id'], player('p2'))

        players = game_manager.get_game(game['id'])['players']
        assert [(p['user_id'], p['turn_order']) for p in players] == [('p1', 1), ('p3', 2)]

    def test_creator_cannot_leave(self, game_manager):
        game = game_manager.create_game(self.creator)
        with pytest.raises(ForbiddenError) as exc_info:
            game_manager.leave_game(game['id'], self.creator)
        assert exc_info.value.code == ErrorCode.CREATOR_CANNOT_LEAVE


class TestStartGame:

    def test_start(self, game_manager):
        game = game_manager.create_game(admin('p1'))
        game_manager.join_game(game['id'], player('p2'))

        summary = game_manager.start_game(game['id'], admin('p1'))

        assert summary['status'] == 'in_progress'
        assert summary['current_round'] == 1
        assert summary['started_at'] is not None

    def test_not_enough_players(self, game_manager):
        game = game_manager.create_game(admin('p1'))
        with pytest.raises(ValidationError) as exc_info:
            game_manager.start_game(game['id'], admin('p1'))
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_PLAYERS
        assert game_manager.get_game(game['id'])['status'] == 'lobby'

    def test_only_creator_or_admin(self, game_manager):
        game = game_manager.create_game(admin('p1'))
        game_manager.join_game(game['id'], player('p2'))
        with pytest.raises(ForbiddenError):
            game_manager.start_game(game['id'], player('p2'))
        game_manager.start_game(game['id'], admin('someone-else'))

    def test_start_twice(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2'])
        with pytest.raises(InvalidPhaseError) as exc_info:
            game_manager.start_game(game_id, admin('p1'))
        assert exc_info.value.code == ErrorCode.WRONG_GAME_STATUS


class TestAdvanceRound:

    def test_requires_results(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2', 'p3'])
        with pytest.raises(InvalidPhaseError) as exc_info:
            game_manager.advance_round(game_id, player('p1'))
        assert exc_info.value.details['current_phase'] == 'picking'

        game_manager.pick_question(game_id, player('p1'), 1)
        with pytest.raises(InvalidPhaseError) as exc_info:
            game_manager.advance_round(game_id, player('p1'))
        assert exc_info.value.details['current_phase'] == 'answering'

    def test_only_question_master_or_admin(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2', 'p3'])
        play_round(game_manager, game_id, 1)

        with pytest.raises(ForbiddenError) as exc_info:
            game_manager.advance_round(game_id, player('p2'))
        assert exc_info.value.code == ErrorCode.NOT_QUESTION_MASTER

        result = game_manager.advance_round(game_id, admin('moderator'))
        assert result['finished'] is False

    def test_question_master_rotates(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2', 'p3'], total_rounds=5)
        masters = []
        for question_id in (1, 2, 3, 4):
            masters.append(play_round(game_manager, game_id, question_id))
            game_manager.advance_round(game_id, player(masters[-1]))

        assert masters == ['p1', 'p2', 'p3', 'p1']

    def test_round_limit_finishes_game(self, game_manager, lifecycle_service):
        game_id = start_game(game_manager, ['p1', 'p2'], total_rounds=2)
        play_round(game_manager, game_id, 1)
        assert game_manager.advance_round(game_id, player('p1'))['finished'] is False
        play_round(game_manager, game_id, 2)

        result = game_manager.advance_round(game_id, player('p2'))

        assert result['finished'] is True
        assert result['game']['status'] == 'finished'
        assert result['game']['finished_at'] is not None
        assert result['leaderboard'][0]['user_id'] == 'p1'
        assert not lifecycle_service.concurrency_control.has_game_lock(game_id)

    def test_finished_game_is_read_only(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2'], total_rounds=1)
        play_round(game_manager, game_id, 1)
        game_manager.advance_round(game_id, player('p1'))

        with pytest.raises(InvalidPhaseError) as exc_info:
            game_manager.advance_round(game_id, player('p1'))
        assert exc_info.value.code == ErrorCode.GAME_FINISHED
        with pytest.raises(InvalidPhaseError):
            game_manager.submit_answer(game_id, player('p2'), 'Lyon')

        state = game_manager.get_round_state(game_id, player('p2'))
        assert state['game']['status'] == 'finished'
        assert state['status'] == 'results'
        assert game_manager.get_game(game_id)['status'] == 'finished'
        assert game_id not in {g['id'] for g in game_manager.list_games()}


class TestPointsMode:

    def setup_points_game(self, game_manager, services):
        game = game_manager.create_game(admin('p1'), total_rounds=10, end_mode='points', target_points=10)
        game_manager.join_game(game['id'], player('p2'))
        game_manager.join_game(game['id'], player('p3'))
        game_manager.start_game(game['id'], admin('p1'))
        play_round(game_manager, game['id'], 1)
        return game['id'], services['game_repository'].get_game(game['id'])

    def test_reaching_target_exactly_ends_game(self, game_manager, services):
        game_id, game = self.setup_points_game(game_manager, services)
        services['roster_service'].add_points(game, 'p2', 8)
        assert game.get_participant('p2').score == 10

        result = game_manager.advance_round(game_id, player('p1'))

        assert result['finished'] is True
        assert result['leaderboard'][0]['user_id'] == 'p2'

    def test_below_target_continues(self, game_manager, services):
        game_id, game = self.setup_points_game(game_manager, services)
        services['roster_service'].add_points(game, 'p2', 7)

        result = game_manager.advance_round(game_id, player('p1'))

        assert result['finished'] is False
        assert result['game']['current_round'] == 2

    def test_round_limit_still_applies(self, game_manager):
        game = game_manager.create_game(admin('p1'), total_rounds=1, end_mode='points', target_points=100)
        game_manager.join_game(game['id'], player('p2'))
        game_manager.start_game(game['id'], admin('p1'))
        play_round(game_manager, game['id'], 1)

        assert game_manager.advance_round(game['id'], player('p1'))['finished'] is True


class TestDeleteGame:

    def test_admin_deletes(self, game_manager, lifecycle_service):
        game_id = start_game(game_manager, ['p1', 'p2'])
        game_manager.pick_question(game_id, player('p1'), 1)

        assert game_manager.delete_game(game_id, admin('p1')) is True

        with pytest.raises(NotFoundError):
            game_manager.get_game(game_id)
        with pytest.raises(NotFoundError):
            game_manager.submit_answer(game_id, player('p2'), 'Lyon')
        assert not lifecycle_service.concurrency_control.has_game_lock(game_id)

    def test_non_admin_cannot_delete(self, game_manager):
        game_id = start_game(game_manager, ['p1', 'p2'])
        with pytest.raises(ForbiddenError):
            game_manager.delete_game(game_id, player('p2'))
        assert game_manager.get_game(game_id)['id'] == game_id

    def test_delete_unknown_game(self, game_manager):
        with pytest.raises(NotFoundError):
            game_manager.delete_game(404, admin('p1'))
