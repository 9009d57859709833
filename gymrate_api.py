#!/usr/bin/env python3
"""
GymRate API - JSON endpoints for gyms, ratings and accounts.

Routes are declared on the ``api`` blueprint and served by the app returned
from :func:`create_app`, which wires one :class:`~app.repositories.Storage`
and one :class:`gymrate.Config` into the services.  Rating a gym and listing
accounts require a token in the ``x-jwt-token`` header.
"""

import argparse
import logging
import sys
from functools import wraps
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

import database
import gymrate
from app.errors import DecodeError, GymRateError, UnauthenticatedError
from app.models import (
    CreateAccountRequest, CreateGymRequest, CreateRatingRequest, LoginRequest,
    UpdateGymRequest,
)
from app.repositories import SQLStorage, Storage
from app.services import AccountService, GymService, TOKEN_HEADER, TokenService
from openapi_spec import build_spec

api_logger = logging.getLogger('gymrate.api')

api = Blueprint('api', __name__)


class Services:
    """Per-application service container stored in ``app.extensions``."""

    def __init__(self, storage: Storage, tokens: TokenService) -> None:
        self.storage = storage
        self.tokens = tokens
        self.gyms = GymService(storage)
        self.accounts = AccountService(storage, tokens)


def _services() -> Services:
    return current_app.extensions['gymrate']


def _parse_id(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise DecodeError(f"Invalid id given {raw}")


def _json_body():
    return request.get_json(silent=True)


def require_auth(f):
    """Decorator to require a valid token.

    The resolved account id is passed to the view as its first positional
    argument.  Without a valid token the view is never called.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.headers.get(TOKEN_HEADER, '')
        try:
            account_id = _services().tokens.validate_token(token)
        except UnauthenticatedError as exc:
            api_logger.info('Rejected %s %s: %s', request.method, request.path, exc.message)
            return jsonify({'error': exc.message}), exc.status_code
        return f(account_id, *args, **kwargs)
    return decorated_function


# -----------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------

def handle_gymrate_error(exc: GymRateError):
    if exc.status_code >= 500:
        api_logger.error('Server error on %s %s: %s', request.method, request.path, exc.message,
                         exc_info=exc)
        return jsonify({'error': 'Internal server error'}), exc.status_code
    return jsonify({'error': exc.message}), exc.status_code


def handle_http_error(exc: HTTPException):
    return jsonify({'error': exc.description}), exc.code


# -----------------------------------------------------------------------
# Health & docs
# -----------------------------------------------------------------------

@api.route('/healthcheck', methods=['GET'])
def api_healthcheck():
    """Liveness probe."""
    return jsonify({'status': 'ok'})


@api.route('/openapi.json', methods=['GET'])
def api_openapi_spec():
    """Return the OpenAPI document for this service."""
    return jsonify(build_spec(server_url=request.host_url.rstrip('/')))


# -----------------------------------------------------------------------
# Auth endpoints
# -----------------------------------------------------------------------

@api.route('/login', methods=['GET', 'POST'])
def api_login():
    """Exchange credentials for a token.

    Body JSON: {"username": "...", "password": "..."}
    """
    login = LoginRequest.from_json(_json_body())
    token, account_id = _services().accounts.login(login)
    api_logger.info('Login succeeded for account %d', account_id)
    return jsonify({'token': token, 'accountId': account_id})


# -----------------------------------------------------------------------
# Gym endpoints
# -----------------------------------------------------------------------

@api.route('/gyms', methods=['GET'])
def api_get_gyms():
    """Return all gyms with their average rating."""
    api_logger.info('Listing gyms')
    gyms = _services().gyms.list_gyms()
    return jsonify([g.to_dict() for g in gyms])


@api.route('/gyms/<gym_id>', methods=['GET'])
def api_get_gym(gym_id: str):
    """Return one gym with its average rating."""
    gid = _parse_id(gym_id)
    api_logger.info('Fetching gym %d', gid)
    return jsonify(_services().gyms.get_gym(gid).to_dict())


@api.route('/gyms', methods=['POST'])
def api_create_gym():
    """Create a gym.

    Body JSON: {"name": "required", "description": "optional"}
    """
    create = CreateGymRequest.from_json(_json_body())
    gym = _services().gyms.create_gym(create)
    return jsonify(gym.to_dict()), 201


@api.route('/gyms/<gym_id>', methods=['PUT'])
def api_update_gym(gym_id: str):
    """Update a gym's name and/or description."""
    gid = _parse_id(gym_id)
    update = UpdateGymRequest.from_json(_json_body())
    api_logger.info('Updating gym %d', gid)
    return jsonify(_services().gyms.update_gym(gid, update).to_dict())


@api.route('/gyms/<gym_id>', methods=['DELETE'])
def api_delete_gym(gym_id: str):
    """Delete a gym and its ratings.  Deleting a missing gym succeeds."""
    gid = _parse_id(gym_id)
    api_logger.info('Deleting gym %d', gid)
    deleted = _services().gyms.delete_gym(gid)
    return jsonify({'success': True, 'id': gid, 'deleted': deleted})


@api.route('/gyms/<gym_id>/ratings', methods=['POST'])
@require_auth
def api_rate_gym(account_id: int, gym_id: str):
    """Rate a gym as the authenticated account.

    Body JSON: {"rating": 1-5, "review": "optional text"}
    """
    gid = _parse_id(gym_id)
    create = CreateRatingRequest.from_json(_json_body())
    api_logger.info('Account %d rating gym %d', account_id, gid)
    rating = _services().gyms.rate_gym(account_id, gid, create)
    return jsonify(rating.to_dict()), 201


# -----------------------------------------------------------------------
# Account endpoints
# -----------------------------------------------------------------------

@api.route('/accounts', methods=['POST'])
def api_create_account():
    """Sign up.  The response includes a token for the new account.

    Body JSON: {"userName": "...", "password": "..."}
    """
    create = CreateAccountRequest.from_json(_json_body())
    account, token = _services().accounts.sign_up(create)
    payload = account.to_dict()
    payload['token'] = token
    return jsonify(payload), 201


@api.route('/accounts', methods=['GET'])
@require_auth
def api_get_accounts(account_id: int):
    """List all accounts."""
    api_logger.info('Account %d listing accounts', account_id)
    accounts = _services().accounts.list_accounts()
    return jsonify([a.to_dict() for a in accounts])


# -----------------------------------------------------------------------
# Application factory
# -----------------------------------------------------------------------

def create_app(config: Optional[gymrate.Config] = None,
               storage: Optional[Storage] = None) -> Flask:
    """Build the Flask app.

    Args:
        config:  Runtime settings; read from the environment when omitted.
        storage: Backend to serve from.  When omitted a :class:`SQLStorage`
                 is created for ``config.database_url``.
    """
    if config is None:
        config = gymrate.Config.from_env()
    if storage is None:
        engine = database.create_engine_from_config(config)
        storage = SQLStorage(database.make_session_factory(engine))
    if not config.jwt_secret:
        api_logger.warning('JWT_SECRET is not set; login, signup and protected routes will fail')

    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions['gymrate'] = Services(storage, TokenService.from_config(config))
    app.register_blueprint(api)
    app.register_error_handler(GymRateError, handle_gymrate_error)
    app.register_error_handler(HTTPException, handle_http_error)
    return app


def main(argv=None) -> int:
    """Main entry point for the API server"""
    parser = argparse.ArgumentParser(description='GymRate JSON API')
    parser.add_argument('--host', default=None, help='Interface to bind (default: GYMRATE_HOST)')
    parser.add_argument('--port', type=int, default=None, help='Port to bind (default: GYMRATE_PORT)')
    parser.add_argument('--env-file', default=None, help='Path to a .env file')
    parser.add_argument('--init-db', action='store_true', help='Create missing tables before serving')
    args = parser.parse_args(argv)

    config = gymrate.Config.from_env(args.env_file)
    gymrate.setup_logging(config.log_level, config.log_file)

    engine = database.create_engine_from_config(config)
    if args.init_db and not database.init_db(engine):
        api_logger.error('Could not create tables, aborting')
        return 1

    storage = SQLStorage(database.make_session_factory(engine))
    app = create_app(config, storage)

    host = args.host or config.host
    port = args.port or config.port
    api_logger.info('Starting JSON API on %s:%d', host, port)
    app.run(host=host, port=port, debug=False, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
