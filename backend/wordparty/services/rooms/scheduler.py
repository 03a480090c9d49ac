from typing import Callable, List, Tuple


class TaskScheduler:
    """Runs background work through the Socket.IO server's async mode.

    ``start_background_task``/``sleep`` pick threads, eventlet or gevent to
    match whatever Flask-SocketIO was started with.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def spawn(self, fn: Callable, *args, **kwargs):
        return self.socketio.start_background_task(fn, *args, **kwargs)

    def sleep(self, seconds: float) -> None:
        self.socketio.sleep(seconds)


class DeferredScheduler:
    """Queues spawned tasks until ``run_pending`` is called. Sleeping is a no-op.

    Used when BACKGROUND_TASKS is off so timers can be stepped by hand.
    """

    def __init__(self):
        self.pending: List[Tuple[Callable, tuple, dict]] = []

    def spawn(self, fn: Callable, *args, **kwargs):
        self.pending.append((fn, args, kwargs))

    def sleep(self, seconds: float) -> None:
        return None

    def names(self) -> List[str]:
        return [fn.__name__ for fn, _, _ in self.pending]

    def run_pending(self, name: str = None) -> int:
        """Run queued tasks (optionally only those whose function is ``name``).

        Tasks spawned while draining are queued for the next call.
        """
        batch, keep = [], []
        for task in self.pending:
            if name is None or task[0].__name__ == name:
                batch.append(task)
            else:
                keep.append(task)
        self.pending = keep
        for fn, args, kwargs in batch:
            fn(*args, **kwargs)
        return len(batch)


class RoundTimer:
    """Handle for one room's countdown. Cancelling it is final."""

    def __init__(self, code: str):
        self.code = code
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class PresenceSweeper:
    """Periodically rebroadcasts every room's player list."""

    def __init__(self, registry, channel, scheduler, interval: float = 3.0, logger=None):
        self.registry = registry
        self.channel = channel
        self.scheduler = scheduler
        self.interval = interval
        self.logger = logger
        self.running = False

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.scheduler.spawn(self._sweep_loop)
        if self.logger:
            self.logger.info(f"[sweeper-start] interval={self.interval}s")

    def stop(self) -> None:
        self.running = False

    def _sweep_loop(self) -> None:
        while self.running:
            self.scheduler.sleep(self.interval)
            if not self.running:
                return
            try:
                self.sweep()
            except Exception:
                if self.logger:
                    self.logger.exception("[sweeper-error]")

    def sweep(self) -> int:
        """Broadcast the player list of every live room. Returns the room count."""
        count = 0
        for room in self.registry.rooms():
            with room.lock:
                if not room.players:
                    continue
                self.channel.emit('playerList', room.player_list(), to=room.code)
                count += 1
        return count
