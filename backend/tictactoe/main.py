from flask import Blueprint, jsonify
from datetime import datetime, timezone

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Tic-Tac-Toe API is running!'})

@main.route('/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': datetime.now(timezone.utc).isoformat()})
