import os

def _env_flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///tictactoe.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Share links are CLIENT_URL + /session/<id>
    CLIENT_URL = (os.environ.get('CLIENT_URL') or 'http://localhost:5173').rstrip('/')
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
    # Third distinct name joining a full session: refused unless observers are allowed
    ALLOW_OBSERVERS = _env_flag('ALLOW_OBSERVERS')
    # Attempts per write when another writer changed the row underneath us
    SESSION_WRITE_RETRIES = int(os.environ.get('SESSION_WRITE_RETRIES', '3'))
    # Suggested client polling interval, echoed in session snapshots
    POLL_INTERVAL_MS = int(os.environ.get('POLL_INTERVAL_MS', '1000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
