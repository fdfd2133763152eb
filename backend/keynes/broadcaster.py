from flask_socketio import SocketIO


class SocketIOBroadcaster:
    """Outbound half of the gateway: pushes session events to Socket.IO rooms.

    Uses ``socketio.emit`` rather than the request-bound ``emit`` because
    deadlines fire from background tasks with no request context.
    """

    def __init__(self, socketio: SocketIO, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def broadcast(self, room_code: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=room_code, namespace=self.namespace)

    def send(self, connection_id: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=connection_id, namespace=self.namespace)

    def join(self, connection_id: str, room_code: str) -> None:
        self.socketio.server.enter_room(connection_id, room_code, namespace=self.namespace)

    def leave(self, connection_id: str, room_code: str) -> None:
        self.socketio.server.leave_room(connection_id, room_code, namespace=self.namespace)
