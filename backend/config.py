import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///whackamole.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Storage key the high score is persisted under
    HIGH_SCORE_KEY = os.environ.get('HIGH_SCORE_KEY', 'HighScore')
    # Optional: seed the spawn RNG for reproducible sessions. Empty disables.
    ENGINE_SEED = os.environ.get('ENGINE_SEED') or None
