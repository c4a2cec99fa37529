#!/usr/bin/env python3
"""
Roulette Table - Flask Web Application
JSON API over a single game session bound to one ledger account.
"""

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from roulette_table.engine import BetStatus, GameSession, SpinStatus
from roulette_table.ledger import SqlLedger
from roulette_table.models import (
    BET_MENU, Bet, BetCategory, GameConfig, InvalidBetError, LedgerError,
    category_for_selector
)
from roulette_table.wheel import Wheel


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _as_int(value, what: str) -> int:
    """An int, or a string holding one. Floats such as 17.9 are refused."""
    if isinstance(value, bool):
        raise InvalidBetError(f"Invalid {what}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidBetError(f"Invalid {what}: {value!r}")


def _bet_from_payload(data: dict) -> Bet:
    """
    Build a Bet from a request body.

    Accepts either ``category`` (e.g. "Red") or the menu ``selector`` (1-18).

    Raises:
        InvalidBetError: On any malformed field
    """
    if not isinstance(data, dict):
        raise InvalidBetError("Request body must be a JSON object")

    if 'category' in data:
        try:
            category = BetCategory(data['category'])
        except ValueError:
            raise InvalidBetError(f"Unknown bet category: {data['category']!r}")
    elif 'selector' in data:
        category = category_for_selector(_as_int(data['selector'], "bet type"))
    else:
        raise InvalidBetError("Bet category not provided")

    if 'stake' not in data:
        raise InvalidBetError("Stake not provided")

    number = data.get('number')
    if number is not None:
        number = _as_int(number, "target number")

    return Bet(category, data['stake'], number)


def create_app(
    config: Optional[GameConfig] = None,
    ledger: Optional[SqlLedger] = None,
    wheel: Optional[Wheel] = None,
) -> Flask:
    """Build the app with its own ledger connection and session."""
    config = config or GameConfig.from_file(Path('config.json'))

    if ledger is None:
        ledger = SqlLedger(config.database_url)
        ledger.create_schema()
    if not ledger.account_exists(config.account_id):
        ledger.open_account(config.account_id, config.opening_balance)

    session = GameSession(ledger, config.account_id, wheel=wheel or Wheel(), config=config)

    app = Flask(__name__)
    app.config['GAME_SESSION'] = session
    CORS(app)

    # ========================================================================
    # API ENDPOINTS
    # ========================================================================

    @app.route('/api/options', methods=['GET'])
    def api_options():
        """List the bets offered at the table."""
        return jsonify({
            'success': True,
            'options': [
                {'selector': selector, 'category': category.value, 'label': label, 'pays': odds}
                for selector, category, label, odds in BET_MENU
            ]
        })

    @app.route('/api/balance', methods=['GET'])
    def api_balance():
        """Balance read fresh from the ledger."""
        try:
            balance = session.refresh_balance()
        except LedgerError as e:
            logger.error(f"Balance unavailable: {e}")
            return jsonify({'success': False, 'error': 'Ledger unavailable'}), 503
        return jsonify({'success': True, 'account_id': session.account_id, 'balance': str(balance)})

    @app.route('/api/bets', methods=['POST'])
    def api_place_bet():
        """
        Place a bet.

        Request Body:
            - stake: number or string
            - category: str (e.g. "Red") or selector: int (1-18)
            - number: int, only for single number bets

        Response:
            - success: bool
            - status: ACCEPTED | INSUFFICIENT_FUNDS | LEDGER_FAILURE
            - bet: dict
            - balance: str
        """
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'success': False, 'error': 'No data provided'}), 400

        try:
            bet = _bet_from_payload(data)
        except InvalidBetError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        result = session.place_bet(bet)
        if result.status == BetStatus.LEDGER_FAILURE:
            return jsonify(result.to_dict()), 503
        if result.status == BetStatus.INSUFFICIENT_FUNDS:
            return jsonify(result.to_dict()), 400
        return jsonify(result.to_dict())

    @app.route('/api/bets', methods=['GET'])
    def api_pending_bets():
        return jsonify({'success': True, 'bets': [bet.to_dict() for bet in session.pending_bets]})

    @app.route('/api/spin', methods=['POST'])
    def api_spin():
        """Spin the wheel and settle all pending bets."""
        result = session.spin()
        if result.status == SpinStatus.LEDGER_FAILURE:
            return jsonify(result.to_dict()), 503
        return jsonify(result.to_dict())

    @app.route('/api/stats', methods=['GET'])
    def api_stats():
        return jsonify({'success': True, **session.statistics()})

    @app.route('/api/transactions', methods=['GET'])
    def api_transactions():
        """Most recent ledger entries for the account."""
        limit = request.args.get('limit', default=20, type=int)
        try:
            entries = ledger.recent_transactions(session.account_id, limit=max(1, min(limit, 100)))
        except LedgerError as e:
            logger.error(f"Transactions unavailable: {e}")
            return jsonify({'success': False, 'error': 'Ledger unavailable'}), 503
        return jsonify({'success': True, 'transactions': [entry.to_dict() for entry in entries]})

    @app.route('/api/health', methods=['GET'])
    def api_health():
        """Health check endpoint."""
        return jsonify({'status': 'healthy'})

    # ========================================================================
    # ERROR HANDLERS
    # ========================================================================

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Resource not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.exception("Internal server error")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    print("\n" + "=" * 70)
    print("Roulette Table - Web API")
    print("=" * 70)
    print("\nListening on http://localhost:5000")
    print("\nPress CTRL+C to stop")
    print("=" * 70 + "\n")

    create_app().run(debug=True, host='0.0.0.0', port=5000)
