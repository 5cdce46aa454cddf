from broker import lifecycle, matchmaker
from broker.connection import ConnectionState


def pair(state, connect):
    a, channel_a = connect()
    b, channel_b = connect()
    matchmaker.request_pairing(state, a)
    matchmaker.request_pairing(state, b)
    channel_a.clear()
    channel_b.clear()
    return f"{a}#{b}", (a, channel_a), (b, channel_b)


def test_leave_tears_down_room(state, connect):
    room_id, (a, channel_a), (b, channel_b) = pair(state, connect)

    assert lifecycle.leave(state, b, room_id)

    assert state.rooms.lookup(room_id) is None
    assert channel_a.events() == ["partner_left"]
    assert channel_b.messages == []
    for connection_id in (a, b):
        connection = state.registry.get(connection_id)
        assert connection.state == ConnectionState.IDLE
        assert connection.room_id is None


def test_leave_twice_is_noop(state, connect):
    """Test a repeated leave has no further visible effect."""
    room_id, (a, channel_a), (b, channel_b) = pair(state, connect)

    assert lifecycle.leave(state, a, room_id)
    assert not lifecycle.leave(state, a, room_id)
    assert not lifecycle.leave(state, b, room_id)

    assert channel_b.events() == ["partner_left"]
    assert channel_a.messages == []


def test_leave_from_non_member_is_ignored(state, connect):
    room_id, (a, channel_a), (b, channel_b) = pair(state, connect)
    c, _ = connect()

    assert not lifecycle.leave(state, c, room_id)
    assert state.rooms.lookup(room_id) is not None
    assert channel_a.messages == []
    assert channel_b.messages == []


def test_leaver_can_search_again(state, connect):
    room_id, (a, _), (b, _) = pair(state, connect)
    lifecycle.leave(state, a, room_id)

    assert matchmaker.request_pairing(state, a) == ConnectionState.QUEUED
    assert matchmaker.request_pairing(state, b) == ConnectionState.MATCHED
    assert state.rooms.lookup(f"{a}#{b}").initiator == b


def test_disconnect_in_room_notifies_partner_once(state, connect):
    """Test A disconnecting leaves B idle with exactly one partner_left."""
    room_id, (a, _), (b, channel_b) = pair(state, connect)

    assert lifecycle.disconnect(state, a)
    assert not lifecycle.disconnect(state, a)

    assert channel_b.events() == ["partner_left"]
    assert not state.registry.exists(a)
    assert state.rooms.room_of(a) is None
    assert state.rooms.lookup(room_id) is None
    assert a not in state.queue
    assert state.registry.get(b).state == ConnectionState.IDLE

    assert matchmaker.request_pairing(state, b) == ConnectionState.QUEUED
    assert state.queue.snapshot() == [b]


def test_disconnect_while_queued(state, connect):
    a, channel_a = connect()
    matchmaker.request_pairing(state, a)

    assert lifecycle.disconnect(state, a)

    assert len(state.queue) == 0
    assert not state.registry.exists(a)
    assert channel_a.messages == []


def test_disconnect_while_idle(state, connect):
    a, _ = connect()

    assert lifecycle.disconnect(state, a)
    assert not state.registry.exists(a)


def test_disconnect_unknown_connection(state):
    assert not lifecycle.disconnect(state, "ghost")


def test_cancel_waiting(state, connect):
    a, _ = connect()
    matchmaker.request_pairing(state, a)

    assert lifecycle.cancel_waiting(state, a)
    assert not lifecycle.cancel_waiting(state, a)
    assert state.registry.get(a).state == ConnectionState.IDLE
    assert a not in state.queue
