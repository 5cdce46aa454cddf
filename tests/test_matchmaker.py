from broker import matchmaker
from broker.connection import ConnectionState
from broker.rooms import ROOM_ID_TOKEN
from broker.state import BrokerState
from tests.conftest import RecordingChannel


def test_first_request_waits(state, connect):
    a, channel_a = connect()

    assert matchmaker.request_pairing(state, a) == ConnectionState.QUEUED
    assert state.queue.snapshot() == [a]
    assert state.registry.get(a).state == ConnectionState.QUEUED
    assert channel_a.messages == []


def test_second_request_forms_room(state, connect):
    """Test A then B: room "A#B", B is initiator, A is receiver."""
    a, channel_a = connect()
    b, channel_b = connect()

    matchmaker.request_pairing(state, a)
    assert matchmaker.request_pairing(state, b) == ConnectionState.MATCHED

    room_id = f"{a}#{b}"
    room = state.rooms.lookup(room_id)
    assert room is not None
    assert room.initiator == b
    assert room.receiver == a

    assert channel_a.messages == [
        {"event": "match_found", "data": {"roomId": room_id}},
        {"event": "role", "data": "receiver"},
    ]
    assert channel_b.messages == [
        {"event": "match_found", "data": {"roomId": room_id}},
        {"event": "role", "data": "initiator"},
    ]
    for connection_id in (a, b):
        connection = state.registry.get(connection_id)
        assert connection.state == ConnectionState.MATCHED
        assert connection.room_id == room_id
    assert len(state.queue) == 0


def test_requests_are_served_in_order(state, connect):
    """Test each requester is paired with whoever asked just before it."""
    ids = [connect()[0] for _ in range(6)]

    outcomes = [matchmaker.request_pairing(state, connection_id) for connection_id in ids]

    assert outcomes == [ConnectionState.QUEUED, ConnectionState.MATCHED] * 3
    for waited, requester in zip(ids[0::2], ids[1::2]):
        room = state.rooms.room_of(requester)
        assert room.receiver == waited
        assert room.initiator == requester


def test_duplicate_request_is_ignored(state, connect):
    a, _ = connect()

    matchmaker.request_pairing(state, a)
    assert matchmaker.request_pairing(state, a) is None
    assert state.queue.snapshot() == [a]
    assert len(state.rooms) == 0


def test_request_while_matched_is_ignored(state, connect):
    a, _ = connect()
    b, channel_b = connect()
    c, _ = connect()
    matchmaker.request_pairing(state, a)
    matchmaker.request_pairing(state, b)
    matchmaker.request_pairing(state, c)
    channel_b.clear()

    assert matchmaker.request_pairing(state, b) is None
    assert state.queue.snapshot() == [c]
    assert channel_b.messages == []


def test_unknown_connection_is_ignored(state):
    assert matchmaker.request_pairing(state, "ghost") is None
    assert len(state.queue) == 0


def test_stale_entries_are_skipped(state, connect):
    """Test a waiter that vanished without cleanup is never paired."""
    a, _ = connect()
    b, _ = connect()
    c, channel_c = connect()
    matchmaker.request_pairing(state, a)
    # registry removal only, the queue entry goes stale
    state.registry.unregister(a)

    assert matchmaker.request_pairing(state, b) == ConnectionState.QUEUED
    assert state.queue.snapshot() == [b]

    assert matchmaker.request_pairing(state, c) == ConnectionState.MATCHED
    assert state.rooms.room_of(c).receiver == b
    assert channel_c.of("match_found") == [{"roomId": f"{b}#{c}"}]


def test_self_match_is_discarded(state, connect):
    """Test a corrupted queue holding the requester itself never pairs it."""
    a, _ = connect()
    b, _ = connect()
    for connection_id in (a, b):
        state.queue.enqueue(connection_id)
        state.registry.get(connection_id).state = ConnectionState.QUEUED

    assert matchmaker._dequeue_partner(state, a) == b
    assert len(state.queue) == 0


def test_no_room_ever_pairs_a_connection_with_itself(state, connect):
    ids = [connect()[0] for _ in range(6)]
    for connection_id in ids + ids:
        matchmaker.request_pairing(state, connection_id)

    assert len(state.rooms) == 3
    for connection_id in ids:
        room = state.rooms.room_of(connection_id)
        assert room.initiator != room.receiver
        assert state.registry.get(connection_id).state == ConnectionState.MATCHED


def test_token_room_ids():
    state = BrokerState(room_id_mode=ROOM_ID_TOKEN)
    channel_a, channel_b = RecordingChannel(), RecordingChannel()
    a = state.registry.register(channel_a)
    b = state.registry.register(channel_b)

    matchmaker.request_pairing(state, a)
    matchmaker.request_pairing(state, b)

    room_id = channel_a.of("match_found")[0]["roomId"]
    assert room_id == channel_b.of("match_found")[0]["roomId"]
    assert a not in room_id and b not in room_id
    assert state.rooms.lookup(room_id).initiator == b


def test_outcomes_are_connection_state_values(state, connect):
    a, _ = connect()
    b, _ = connect()

    queued = matchmaker.request_pairing(state, a)
    matched = matchmaker.request_pairing(state, b)

    assert type(queued) is str and queued == ConnectionState.QUEUED.value
    assert type(matched) is str and matched == ConnectionState.MATCHED.value
    assert state.registry.get(a).state.value == queued
