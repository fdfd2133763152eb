import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed to open Socket.IO connections
    CORS_ALLOWED_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if o.strip()
    ]
    # Phase timers (seconds)
    INPUT_DURATION_SEC = int(os.environ.get('INPUT_DURATION_SEC', '60'))
    RESULTS_DURATION_SEC = int(os.environ.get('RESULTS_DURATION_SEC', '15'))
    # Value scored for players who miss the input deadline
    DEFAULT_CHOICE = float(os.environ.get('DEFAULT_CHOICE', '50.0'))
    # Target = average * multiplier
    TARGET_MULTIPLIER = float(os.environ.get('TARGET_MULTIPLIER', '0.8'))
    # Reported as lastRoundAverage before the first round resolves
    INITIAL_ROUND_AVERAGE = float(os.environ.get('INITIAL_ROUND_AVERAGE', '50.0'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '5'))
