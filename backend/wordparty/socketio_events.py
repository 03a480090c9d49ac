import functools
from typing import Any, Dict

from flask import current_app, request
from flask_socketio import emit

from wordparty import socketio
from wordparty.errors import GameError, NotAuthorized, RoomNotFound
from wordparty.services.rooms.registry import normalize_code

SERVER_ERROR = {'error': 'Server error'}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _services():
    return current_app.extensions['wordparty']


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def guarded(handler):
    """Fault-isolate a handler and turn its outcome into an ack.

    GameError -> ``{'error': message}``; NotAuthorized -> silent empty ack;
    anything else is logged and reported as a generic server error.
    """
    @functools.wraps(handler)
    def wrapper(*args):
        try:
            return handler(*args)
        except NotAuthorized:
            return None
        except GameError as exc:
            current_app.logger.info(f"[rejected] event={handler.__name__} sid={_get_sid()} reason={exc.message!r}")
            return {'error': exc.message}
        except Exception:
            current_app.logger.exception(f"[handler-error] event={handler.__name__} sid={_get_sid()}")
            return dict(SERVER_ERROR)
    return wrapper


def _current_room():
    room = _services().registry.find_by_connection(_get_sid())
    if room is None:
        raise NotAuthorized()
    return room


def _leave_current_room(sid: str) -> None:
    svc = _services()
    room = svc.registry.find_by_connection(sid)
    if room is not None:
        svc.machine.leave(room, sid)


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid}")
    try:
        _leave_current_room(sid)
    except Exception:
        current_app.logger.exception(f"[disconnect-error] sid={sid}")


@guarded
def handle_create_game(data=None):
    data = _payload(data)
    sid = _get_sid()
    machine = _services().machine
    machine.check_create(data.get('name'), data.get('customCode'))
    _leave_current_room(sid)
    room = machine.create(sid, data.get('name'), data.get('customCode'))
    return {'success': True, 'code': room.code}


@guarded
def handle_join_game(data=None):
    data = _payload(data)
    sid = _get_sid()
    code, name = data.get('code'), data.get('name')
    if not code or not name:
        return {'error': 'Invalid code or name'}
    code = normalize_code(code)
    svc = _services()
    room = svc.registry.find_by_code(code)
    if room is None:
        emit('noGameFound')
        raise RoomNotFound()
    svc.machine.check_join(room, sid, name)
    _leave_current_room(sid)
    svc.machine.join(room, sid, name)
    return {'success': True, 'code': room.code}


@guarded
def handle_leave_room(data=None):
    data = _payload(data)
    sid = _get_sid()
    svc = _services()
    room = svc.registry.find_by_code(data.get('code')) if data.get('code') else None
    room = room or svc.registry.find_by_connection(sid)
    if room is None:
        raise NotAuthorized()
    svc.machine.leave(room, sid)
    return {'success': True}


@guarded
def handle_start_game(data=None):
    room = _services().registry.find_by_code(_payload(data).get('code'))
    if room is None:
        raise NotAuthorized()
    _services().machine.start(room, _get_sid())
    return {'success': True}


@guarded
def handle_assign_role(data=None):
    data = _payload(data)
    room = _services().registry.find_by_code(data.get('code'))
    if room is None:
        raise NotAuthorized()
    _services().machine.assign_role(room, _get_sid(), data.get('name'), data.get('role'))
    return {'success': True}


@guarded
def handle_send_chat(data=None):
    _services().machine.submit_chat(_current_room(), _get_sid(), _payload(data).get('text'))
    return {'success': True}


@guarded
def handle_choose_custom_word(data=None):
    difficulty = _services().machine.choose_custom_word(_current_room(), _get_sid(), _payload(data).get('word'))
    return {'success': True, 'difficulty': difficulty}


@guarded
def handle_choose_random_word(data=None):
    difficulty = _services().machine.choose_random_word(_current_room(), _get_sid())
    return {'success': True, 'difficulty': difficulty}


@guarded
def handle_explainer_answer(data=None):
    _services().machine.explainer_answer(_current_room(), _get_sid(), _payload(data).get('answer'))
    return {'success': True}


@guarded
def handle_give_hint(data=None):
    _services().machine.give_hint(_current_room(), _get_sid())
    return {'success': True}


@guarded
def handle_extend_time(data=None):
    seconds = _services().machine.extend_time(_current_room(), _get_sid())
    return {'success': True, 'seconds': seconds}


@guarded
def handle_give_up(data=None):
    _services().machine.give_up(_current_room(), _get_sid(), _payload(data).get('reason'))
    return {'success': True}


@guarded
def handle_debug(data=None):
    room = _current_room()
    with room.lock:
        snapshot = room.to_dict()
    emit('debugInfo', snapshot)


EVENTS = {
    'createGame': handle_create_game,
    'joinGame': handle_join_game,
    'leaveRoom': handle_leave_room,
    'startGame': handle_start_game,
    'assignRole': handle_assign_role,
    'sendChat': handle_send_chat,
    'chooseCustomWord': handle_choose_custom_word,
    'chooseRandomWord': handle_choose_random_word,
    'explainerAnswer': handle_explainer_answer,
    'giveHint': handle_give_hint,
    'extendTime': handle_extend_time,
    'giveUp': handle_give_up,
    'debug': handle_debug,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register every inbound game event on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for name, handler in EVENTS.items():
        socketio.on_event(name, handler, namespace=namespace)
