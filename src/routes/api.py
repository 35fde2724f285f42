"""
REST API endpoints for the BluffQuiz application.

Caller identity comes from the X-User-Id and X-User-Admin headers, which an
upstream authentication layer sets after verifying the user.
"""

import logging
from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from src.core.errors import GameError
from src.core.models import Actor
from src.services.error_response_factory import ErrorResponseFactory
from src.services.session_service import actor_from_headers

logger = logging.getLogger(__name__)


def get_actor() -> Actor:
    """Identity of the current request.

    Raises:
        AuthenticationError: If no user id was supplied
    """
    return actor_from_headers(request.headers)


def create_api_blueprint(services):
    """Create and configure the API Blueprint with service dependencies."""
    game_manager = services['game_manager']
    validation_service = services['validation_service']
    error_factory = ErrorResponseFactory()

    api = Blueprint('api', __name__, url_prefix='/api')

    def ok(data, status=200):
        return jsonify(error_factory.create_success_response(data)), status

    def request_data(required_fields=None):
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        return validation_service.validate_request_data(data, required_fields)

    @api.errorhandler(GameError)
    def handle_game_error(error):
        response, status = error_factory.create_response_for_exception(error, request.path)
        return jsonify(response), status

    @api.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        response, status = error_factory.create_response_for_exception(error, request.path)
        return jsonify(response), status

    # Games

    @api.route('/games', methods=['GET'])
    def list_games():
        get_actor()
        return ok({'games': game_manager.list_games()})

    @api.route('/games', methods=['POST'])
    def create_game():
        actor = get_actor()
        data = request_data()
        game = game_manager.create_game(
            actor,
            total_rounds=data.get('total_rounds'),
            end_mode=data.get('end_mode'),
            target_points=data.get('target_points'),
            display_name=data.get('display_name'),
        )
        return ok({'game': game}, 201)

    @api.route('/games/<int:game_id>', methods=['GET'])
    def get_game(game_id):
        get_actor()
        return ok({'game': game_manager.get_game(game_id)})

    @api.route('/games/<int:game_id>', methods=['DELETE'])
    def delete_game(game_id):
        actor = get_actor()
        return ok({'deleted': game_manager.delete_game(game_id, actor)})

    @api.route('/games/<int:game_id>/join', methods=['POST'])
    def join_game(game_id):
        actor = get_actor()
        data = request_data()
        return ok(game_manager.join_game(game_id, actor, data.get('display_name')))

    @api.route('/games/<int:game_id>/leave', methods=['POST'])
    def leave_game(game_id):
        actor = get_actor()
        game_manager.leave_game(game_id, actor)
        return ok({'left': True})

    @api.route('/games/<int:game_id>/start', methods=['POST'])
    def start_game(game_id):
        actor = get_actor()
        return ok({'game': game_manager.start_game(game_id, actor)})

    # Rounds

    @api.route('/games/<int:game_id>/round', methods=['GET'])
    def get_round(game_id):
        actor = get_actor()
        return ok({'round': game_manager.get_round_state(game_id, actor)})

    @api.route('/games/<int:game_id>/available-questions', methods=['GET'])
    def available_questions(game_id):
        actor = get_actor()
        category = request.args.get('category') or None
        return ok({'questions': game_manager.list_available_questions(game_id, actor, category)})

    @api.route('/games/<int:game_id>/pick-question', methods=['POST'])
    def pick_question(game_id):
        actor = get_actor()
        data = request_data(['question_id'])
        return ok(game_manager.pick_question(game_id, actor, data['question_id']))

    @api.route('/games/<int:game_id>/answer', methods=['POST'])
    def submit_answer(game_id):
        actor = get_actor()
        data = request_data()
        return ok(game_manager.submit_answer(game_id, actor, data.get('answer_text')))

    @api.route('/games/<int:game_id>/vote', methods=['POST'])
    def cast_vote(game_id):
        actor = get_actor()
        data = request_data(['answer_id'])
        return ok(game_manager.cast_vote(game_id, actor, data['answer_id']))

    @api.route('/games/<int:game_id>/next-round', methods=['POST'])
    def next_round(game_id):
        actor = get_actor()
        return ok(game_manager.advance_round(game_id, actor))

    @api.route('/games/<int:game_id>/scoring-breakdown', methods=['GET'])
    def scoring_breakdown(game_id):
        get_actor()
        return ok(game_manager.get_scoring_breakdown(game_id))

    @api.route('/games/<int:game_id>/leaderboard', methods=['GET'])
    def leaderboard(game_id):
        get_actor()
        return ok({'leaderboard': game_manager.get_leaderboard(game_id)})

    # Questions

    @api.route('/questions/categories', methods=['GET'])
    def categories():
        get_actor()
        return ok({'categories': game_manager.get_categories()})

    @api.route('/questions', methods=['GET'])
    def list_questions():
        actor = get_actor()
        category = request.args.get('category') or None
        return ok({'questions': game_manager.list_questions(actor, category)})

    @api.route('/questions', methods=['POST'])
    def add_question():
        actor = get_actor()
        data = request_data()
        question = game_manager.add_question(
            actor,
            data.get('question_text'),
            data.get('correct_answer'),
            data.get('category'),
        )
        return ok({'question': question}, 201)

    @api.route('/questions/<int:question_id>', methods=['PUT'])
    def update_question(question_id):
        actor = get_actor()
        data = request_data()
        question = game_manager.update_question(
            actor,
            question_id,
            data.get('question_text'),
            data.get('correct_answer'),
            data.get('category'),
        )
        return ok({'question': question})

    @api.route('/questions/<int:question_id>', methods=['DELETE'])
    def delete_question(question_id):
        actor = get_actor()
        return ok({'deleted': game_manager.delete_question(actor, question_id)})

    return api
