class RoomChannel:
    """Room-scoped pub/sub on top of the Socket.IO server.

    Rooms are addressed by their code, single connections by their sid.
    Works outside a request context, so timers can publish too.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event, payload=None, to=None):
        if payload is None:
            self.socketio.emit(event, to=to, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=to, namespace=self.namespace)

    def subscribe(self, connection_id, code):
        self.socketio.server.enter_room(connection_id, code, namespace=self.namespace)

    def unsubscribe(self, connection_id, code):
        self.socketio.server.leave_room(connection_id, code, namespace=self.namespace)

    def close(self, code):
        self.socketio.server.close_room(code, namespace=self.namespace)
