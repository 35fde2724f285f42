"""
REST API Integration Tests

Drives the Flask application end to end: identity headers, envelopes,
status codes and full rounds played over HTTP.
"""

import pytest

from tests.helpers.api_helpers import ApiClient, create_started_game, data_of, error_of, option_id


class TestIdentityAndEnvelopes:

    def test_missing_identity_is_unauthorized(self, client):
        error = error_of(ApiClient(client, None).get('/games'), 401)
        assert error['code'] == 'UNAUTHENTICATED'

    def test_list_games(self, client):
        assert data_of(ApiClient(client, 'p1').get('/games')) == {'games': []}

    def test_unknown_game_is_not_found(self, client):
        error = error_of(ApiClient(client, 'p1').get('/games/404'), 404)
        assert error['code'] == 'GAME_NOT_FOUND'
        assert error['details'] == {'game_id': 404}

    def test_create_requires_admin(self, client):
        error = error_of(ApiClient(client, 'p1').post('/games', json={}), 403)
        assert error['code'] == 'ADMIN_REQUIRED'

    def test_invalid_settings(self, client):
        response = ApiClient(client, 'a', is_admin=True).post('/games', json={'end_mode': 'points'})
        assert error_of(response, 400)['code'] == 'INVALID_GAME_SETTINGS'

    def test_missing_required_field(self, client):
        game_id = create_started_game(client, ['p1', 'p2'])
        error = error_of(ApiClient(client, 'p1').post(f'/games/{game_id}/pick-question', json={}), 400)
        assert error['code'] == 'MISSING_DATA'
        assert error['details']['missing_fields'] == ['question_id']

    def test_wrong_phase_is_conflict(self, client):
        game_id = create_started_game(client, ['p1', 'p2'])
        error = error_of(ApiClient(client, 'p2').post(f'/games/{game_id}/answer', json={'answer_text': 'x'}), 409)
        assert error['code'] == 'WRONG_PHASE'
        assert error['details']['current_phase'] == 'picking'

    def test_unknown_route_is_plain_404(self, client):
        response = ApiClient(client, 'p1').get('/nothing-here')
        assert response.status_code == 404


class TestGameSetup:

    def test_create_join_start(self, client):
        admin = ApiClient(client, 'p1', is_admin=True)
        game = data_of(admin.post('/games', json={'total_rounds': 2, 'display_name': 'Alice'}), 201)['game']

        joined = data_of(ApiClient(client, 'p2').post(f"/games/{game['id']}/join", json={'display_name': 'Bob'}))
        assert joined['joined'] is True
        assert joined['participant']['turn_order'] == 2

        started = data_of(admin.post(f"/games/{game['id']}/start"))['game']
        assert started['status'] == 'in_progress'
        assert started['current_round'] == 1

        details = data_of(ApiClient(client, 'p2').get(f"/games/{game['id']}"))['game']
        assert [p['display_name'] for p in details['players']] == ['Alice', 'Bob']

    def test_start_needs_two_players(self, client):
        admin = ApiClient(client, 'p1', is_admin=True)
        game = data_of(admin.post('/games', json={}), 201)['game']
        assert error_of(admin.post(f"/games/{game['id']}/start"), 400)['code'] == 'INSUFFICIENT_PLAYERS'

    def test_leave_and_delete(self, client):
        admin = ApiClient(client, 'p1', is_admin=True)
        game = data_of(admin.post('/games', json={}), 201)['game']
        p2 = ApiClient(client, 'p2')
        data_of(p2.post(f"/games/{game['id']}/join"))

        assert data_of(p2.post(f"/games/{game['id']}/leave")) == {'left': True}
        assert error_of(admin.post(f"/games/{game['id']}/leave"), 403)['code'] == 'CREATOR_CANNOT_LEAVE'

        assert data_of(admin.delete(f"/games/{game['id']}")) == {'deleted': True}
        error_of(admin.get(f"/games/{game['id']}"), 404)


class TestRoundOverHttp:

    def test_full_round(self, client):
        game_id = create_started_game(client, ['p1', 'p2', 'p3'], total_rounds=1)
        p1, p2, p3 = ApiClient(client, 'p1'), ApiClient(client, 'p2'), ApiClient(client, 'p3')

        questions = data_of(p1.get(f'/games/{game_id}/available-questions'))['questions']
        assert questions
        assert all('correct_answer' not in q for q in questions)

        picked = data_of(p1.post(f'/games/{game_id}/pick-question', json={'question_id': 1}))
        assert picked['phase'] == 'answering'

        assert data_of(p2.post(f'/games/{game_id}/answer', json={'answer_text': 'Lyon'}))['phase'] == 'answering'
        assert data_of(p3.post(f'/games/{game_id}/answer', json={'answer_text': 'Marseille'}))['phase'] == 'voting'

        round_for_p2 = data_of(p2.get(f'/games/{game_id}/round'))['round']
        assert round_for_p2['status'] == 'voting'
        assert 'correct_answer' not in round_for_p2
        assert sorted(a['answer_text'] for a in round_for_p2['answers']) == ['Lyon', 'Marseille', 'Paris']

        own = option_id(round_for_p2, 'Lyon')
        assert error_of(p2.post(f'/games/{game_id}/vote', json={'answer_id': own}), 400)['code'] == \
            'CANNOT_VOTE_OWN_ANSWER'

        data_of(p2.post(f'/games/{game_id}/vote', json={'answer_id': option_id(round_for_p2, 'Paris')}))
        round_for_p3 = data_of(p3.get(f'/games/{game_id}/round'))['round']
        voted = data_of(p3.post(f'/games/{game_id}/vote', json={'answer_id': option_id(round_for_p3, 'Lyon')}))
        assert voted['phase'] == 'results'

        results = data_of(p3.get(f'/games/{game_id}/round'))['round']
        assert results['correct_answer'] == 'Paris'
        assert results['points_awarded'] == {'p2': 3}

        finished = data_of(p1.post(f'/games/{game_id}/next-round'))
        assert finished['finished'] is True
        assert finished['leaderboard'][0]['user_id'] == 'p2'

        leaderboard = data_of(p1.get(f'/games/{game_id}/leaderboard'))['leaderboard']
        assert [(e['user_id'], e['score']) for e in leaderboard] == [('p2', 3), ('p1', 0), ('p3', 0)]

    def test_breakdown_matches_point_rules(self, client):
        game_id = create_started_game(client, ['p1', 'p2', 'p3'])
        p1, p2, p3 = ApiClient(client, 'p1'), ApiClient(client, 'p2'), ApiClient(client, 'p3')
        data_of(p1.post(f'/games/{game_id}/pick-question', json={'question_id': 3}))
        data_of(p2.post(f'/games/{game_id}/answer', json={'answer_text': 'venus'}))
        data_of(p3.post(f'/games/{game_id}/answer', json={'answer_text': 'Mars'}))
        round_for_p3 = data_of(p3.get(f'/games/{game_id}/round'))['round']
        data_of(p3.post(f'/games/{game_id}/vote', json={'answer_id': option_id(round_for_p3, 'Venus')}))

        breakdown = data_of(p1.get(f'/games/{game_id}/scoring-breakdown'))
        rules = breakdown['scoring_rules']
        by_user = {e['user_id']: e for e in breakdown['participants']}

        assert by_user['p2']['correct_guesses'] == 1
        assert by_user['p3']['correct_votes'] == 1
        assert by_user['p2']['points'] == rules['correct_guess']
        assert by_user['p3']['points'] == rules['correct_vote']
        assert all(e['points'] == e['score'] for e in breakdown['participants'])

    def test_only_question_master_picks(self, client):
        game_id = create_started_game(client, ['p1', 'p2'])
        response = ApiClient(client, 'p2').post(f'/games/{game_id}/pick-question', json={'question_id': 1})
        assert error_of(response, 403)['code'] == 'NOT_QUESTION_MASTER'

    def test_round_state_for_outsider(self, client):
        game_id = create_started_game(client, ['p1', 'p2'])
        assert error_of(ApiClient(client, 'x').get(f'/games/{game_id}/round'), 403)['code'] == 'NOT_A_PARTICIPANT'


class TestQuestionsOverHttp:

    def test_categories(self, client):
        assert data_of(ApiClient(client, 'p1').get('/questions/categories')) == {
            'categories': ['Geography', 'Science', 'History']
        }

    def test_question_admin(self, client):
        admin = ApiClient(client, 'a', is_admin=True)
        created = data_of(admin.post('/questions', json={
            'question_text': 'Tallest mountain?', 'correct_answer': 'Everest', 'category': 'Geography'
        }), 201)['question']
        assert created['id'] == 6

        updated = data_of(admin.put('/questions/6', json={'correct_answer': 'Mount Everest'}))['question']
        assert updated['correct_answer'] == 'Mount Everest'

        science = data_of(ApiClient(client, 'p1').get('/questions', query_string={'category': 'Science'}))
        assert {q['id'] for q in science['questions']} == {3, 5}

        assert data_of(admin.delete('/questions/6')) == {'deleted': True}
        assert error_of(admin.delete('/questions/6'), 404)['code'] == 'QUESTION_NOT_FOUND'

    def test_question_admin_requires_admin(self, client):
        response = ApiClient(client, 'p1').post('/questions', json={'question_text': 'Q?', 'correct_answer': 'A'})
        assert error_of(response, 403)['code'] == 'ADMIN_REQUIRED'

    def test_invalid_category(self, client):
        response = ApiClient(client, 'p1').get('/questions', query_string={'category': 'Cooking'})
        assert error_of(response, 400)['code'] == 'INVALID_CATEGORY'
