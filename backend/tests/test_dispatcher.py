import threading

import pytest

from wordbomb.game.dispatcher import RoomDispatcher


def thread_spawn(fn, *args):
    t = threading.Thread(target=fn, args=args, daemon=True)
    t.start()
    return t


def test_inline_runs_immediately():
    d = RoomDispatcher(inline=True)
    future = d.submit('r', lambda x: x * 2, 21)
    assert future.done()
    assert future.result() == 42


def test_inline_captures_exceptions():
    d = RoomDispatcher(inline=True)

    def boom():
        raise ValueError('nope')

    future = d.submit('r', boom)
    with pytest.raises(ValueError):
        future.result()


def test_requires_spawn_unless_inline():
    with pytest.raises(ValueError):
        RoomDispatcher()


def test_lane_preserves_arrival_order():
    d = RoomDispatcher(thread_spawn)
    seen = []
    futures = [d.submit('r', seen.append, i) for i in range(20)]
    for f in futures:
        f.result(timeout=2)
    assert seen == list(range(20))
    d.drop('r')


def test_one_worker_per_room():
    spawned = []
    d = RoomDispatcher(lambda fn, *args: spawned.append(args[0]))
    d.submit('r1', print)
    d.submit('r1', print)
    d.submit('r2', print)
    assert spawned == ['r1', 'r2']
    assert d.pending('r1') == 2
    assert d.pending('missing') == 0


def test_drop_cancels_queued_actions():
    spawned = []
    d = RoomDispatcher(lambda fn, *args: spawned.append((fn, args)))
    ran = []
    future = d.submit('r', ran.append, 'x')
    d.drop('r')

    fn, args = spawned[0]
    fn(*args)
    assert future.cancelled()
    assert ran == []


def test_drop_if_idle_keeps_busy_lanes():
    spawned = []
    d = RoomDispatcher(lambda fn, *args: spawned.append((fn, args)))
    future = d.submit('r', print)
    assert d.drop_if_idle('r') is False
    assert d.rooms() == ['r']
    assert not future.cancelled()


def test_drop_if_idle_closes_empty_lane():
    d = RoomDispatcher(thread_spawn)
    d.submit('r', int).result(timeout=2)
    assert d.drop_if_idle('r') is True
    assert d.rooms() == []
    assert d.drop_if_idle('never-opened') is True


def test_drop_unknown_room_is_noop():
    d = RoomDispatcher(inline=True)
    d.drop('nope')
