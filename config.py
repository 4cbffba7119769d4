import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///doodleai.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Campaign length
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '5'))
    # Phase timers (seconds)
    COUNTDOWN_DURATION_SEC = int(os.environ.get('COUNTDOWN_DURATION_SEC', '3'))
    DRAW_DURATION_SEC = int(os.environ.get('DRAW_DURATION_SEC', '30'))
    # How long a correct guess stays on screen before results (ms)
    CORRECT_GUESS_HOLD_MS = int(os.environ.get('CORRECT_GUESS_HOLD_MS', '1500'))
    # Optional: debounce start/advance commands (ms). 0 disables.
    CONTROLLER_DEBOUNCE_MS = int(os.environ.get('CONTROLLER_DEBOUNCE_MS', '0'))
    # Optional: heartbeat interval for drawing timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
