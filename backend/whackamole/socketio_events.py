from flask_socketio import emit
from whackamole.api.games import parse_hole
from whackamole.services.games.session import get_session


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})
    # Late joiners render from the current snapshot instead of waiting for a change
    emit('state_update', get_session().snapshot())


def handle_disconnect(reason=None):
    pass


def handle_start(data=None):
    get_session().start()


def handle_pause(data=None):
    get_session().pause()


def handle_reset(data=None):
    get_session().reset()


def handle_whack(data):
    hole, error = parse_hole(data or {})
    if error:
        emit('error', {'message': error})
        return
    get_session().whack(hole)


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from whackamole import socketio

    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'start': handle_start,
        'pause': handle_pause,
        'reset': handle_reset,
        'whack': handle_whack,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
