"""Pairing of waiting connections into rooms."""
from typing import Optional

from broker.connection import ConnectionState
from broker.rooms import INITIATOR, RECEIVER, Room, make_room_id
from broker.state import BrokerState
from logging_config import get_logger

logger = get_logger(__name__)


def _is_waiting(state: BrokerState, connection_id: str) -> bool:
    connection = state.registry.get(connection_id)
    return connection is not None and connection.state == ConnectionState.QUEUED


def _dequeue_partner(state: BrokerState, requester_id: str) -> Optional[str]:
    while True:
        partner_id = state.queue.dequeue_oldest(lambda candidate: _is_waiting(state, candidate))
        if partner_id != requester_id:
            return partner_id
        # a connection found itself at the head of the queue
        logger.error(f"Discarded self-match for connection {requester_id}")


def request_pairing(state: BrokerState, connection_id: str) -> Optional[str]:
    """Pair ``connection_id`` with the oldest waiting connection.

    The requester becomes the room's initiator and the dequeued partner its
    receiver. When nobody is waiting the requester is queued instead.

    Returns ``"matched"`` or ``"queued"``, or None when the request was
    ignored (unknown connection, already queued or in a room).
    """
    requester = state.registry.get(connection_id)
    if requester is None:
        logger.debug(f"Pairing request from unknown connection {connection_id} ignored")
        return None
    if requester.state != ConnectionState.IDLE:
        logger.debug(f"Pairing request from {connection_id} ignored, state is {requester.state.value}")
        return None

    partner_id = _dequeue_partner(state, connection_id)
    if partner_id is None:
        state.queue.enqueue(connection_id)
        requester.state = ConnectionState.QUEUED
        logger.info(f"Connection {connection_id} added to queue (waiting: {len(state.queue)})")
        return ConnectionState.QUEUED.value

    partner = state.registry.get(partner_id)
    room_id = make_room_id(connection_id, partner_id, state.room_id_mode)
    room = state.rooms.create(initiator=connection_id, receiver=partner_id, room_id=room_id)

    for member in (requester, partner):
        member.state = ConnectionState.MATCHED
        member.room_id = room.id

    _announce(state, room)
    logger.info(f"Matched {connection_id} with {partner_id} in room {room.id}")
    return ConnectionState.MATCHED.value


def _announce(state: BrokerState, room: Room):
    for member_id in room.members:
        state.registry.get(member_id).notify("match_found", {"roomId": room.id})
    state.registry.get(room.initiator).notify("role", INITIATOR)
    state.registry.get(room.receiver).notify("role", RECEIVER)
