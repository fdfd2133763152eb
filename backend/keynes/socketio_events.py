from flask import current_app, request
from keynes import socketio, get_registry
from keynes.services.games import GameError


NAMESPACE = '/'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _send_error(exc: GameError) -> None:
    # Unicast to the offending connection only
    get_registry().broadcaster.send(_get_sid(), 'error', {'message': exc.message})


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    get_registry().remove(sid)


def handle_create_game(data):
    data = data or {}
    try:
        get_registry().create(_get_sid(), data.get('playerName'), data.get('totalRounds'))
    except GameError as exc:
        _send_error(exc)


def handle_join_game(data):
    data = data or {}
    try:
        get_registry().join(_get_sid(), data.get('playerName'), data.get('roomCode'))
    except GameError as exc:
        current_app.logger.info(f"[join-rejected] sid={_get_sid()} room={data.get('roomCode')}")
        _send_error(exc)


def handle_start_game(data):
    session = get_registry().get((data or {}).get('roomCode'))
    if session is not None:
        session.start(_get_sid())


def handle_submit_number(data):
    data = data or {}
    session = get_registry().get(data.get('roomCode'))
    if session is not None:
        session.submit(_get_sid(), data.get('number'))


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('createGame', handle_create_game, namespace=NAMESPACE)
    socketio.on_event('joinGame', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('startGame', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('submitNumber', handle_submit_number, namespace=NAMESPACE)
