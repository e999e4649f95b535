import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-in-production-please'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'gym.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Membership alerts: PT members with this many regular sessions or fewer
    LOW_REMAIN_THRESHOLD = int(os.environ.get('LOW_REMAIN_THRESHOLD', 4))

    # Warn the member after a session when 0 < remaining <= this limit
    LOW_BALANCE_WARNING_LIMIT = int(os.environ.get('LOW_BALANCE_WARNING_LIMIT', 3))

    # PT -> OT as soon as the last regular session is used
    DEMOTE_ON_ZERO_BALANCE = _env_flag('DEMOTE_ON_ZERO_BALANCE', True)

    # Optimistic concurrency retries for ledger writes
    LEDGER_RETRY_ATTEMPTS = int(os.environ.get('LEDGER_RETRY_ATTEMPTS', 3))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    DEMOTE_ON_ZERO_BALANCE = True
