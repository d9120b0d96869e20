"""Game domain services: the session engine, timers and high scores.

The engine and scheduler are framework-agnostic; ``session`` and
``scoring`` bind them to the Flask app, Socket.IO and the database so
HTTP routes and socket handlers stay free of game mechanics.
"""
