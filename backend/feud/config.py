import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Single shared secret for the host controller
    HOST_PASSWORD = os.environ.get('HOST_PASSWORD') or 'feudhost'
    BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', '12'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Abandoned room cleanup (seconds)
    ROOM_RETENTION_SEC = int(os.environ.get('ROOM_RETENTION_SEC', '3600'))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '3600'))
    # Question bank; empty disables server-side question draws
    QUESTIONS_CSV = os.environ.get('QUESTIONS_CSV', os.path.join(basedir, 'questions.csv'))
    # Answer judge
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
    JUDGE_MODEL = os.environ.get('JUDGE_MODEL', 'gpt-4o-mini')
    JUDGE_URL = os.environ.get('JUDGE_URL', 'https://api.openai.com/v1/chat/completions')
    # 0 disables the request timeout
    JUDGE_TIMEOUT_SEC = float(os.environ.get('JUDGE_TIMEOUT_SEC', '0'))
    DEFAULT_TIMER_SEC = int(os.environ.get('DEFAULT_TIMER_SEC', '30'))
