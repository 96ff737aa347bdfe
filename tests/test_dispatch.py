import json

from pingrelay.dispatch import Dispatcher
from pingrelay.messages import JoinMessage, PingMessage, UnknownMessage


async def test_ping_reaches_every_room_member_including_sender(directory, connect):
    dispatcher = Dispatcher(directory)
    c, d, e, other = connect(), connect(), connect(), connect()
    for conn in (c, d, e):
        directory.join(conn, "room")
    directory.join(other, "elsewhere")

    sent = await dispatcher.dispatch(c, PingMessage("room", {"x": 1}))

    assert sent == 3
    expected = {"type": "PING", "roomId": "room", "payload": {"x": 1}}
    for conn in (c, d, e):
        assert [json.loads(t) for t in conn.ws.sent] == [expected]
    assert other.ws.sent == []


async def test_ping_auto_joins_sender(directory, connect):
    dispatcher = Dispatcher(directory)
    a = connect()

    await dispatcher.dispatch(a, PingMessage("r1", {}))

    assert a.room_id == "r1"
    assert len(a.ws.sent) == 1


async def test_ping_to_new_room_switches_sender(directory, connect):
    dispatcher = Dispatcher(directory)
    a, b = connect(), connect()
    directory.join(b, "r2")

    await dispatcher.dispatch(a, PingMessage("r1", {}))
    await dispatcher.dispatch(a, PingMessage("r2", {"n": 2}))

    assert "r1" not in directory
    assert directory.members_of("r2") == {a, b}
    assert json.loads(b.ws.sent[-1])["payload"] == {"n": 2}


async def test_join_never_broadcasts(directory, connect):
    dispatcher = Dispatcher(directory)
    a, b = connect(), connect()
    directory.join(a, "lobby")

    sent = await dispatcher.dispatch(b, JoinMessage("lobby"))

    assert sent == 0
    assert b.room_id == "lobby"
    assert a.ws.sent == [] and b.ws.sent == []


async def test_unknown_message_touches_nothing(directory, connect):
    dispatcher = Dispatcher(directory)
    a = connect()

    assert await dispatcher.dispatch(a, UnknownMessage("lobby", "CHAT")) == 0
    assert a.room_id is None
    assert len(directory) == 0


async def test_closed_and_broken_members_are_skipped(directory, connect):
    dispatcher = Dispatcher(directory)
    sender, closed, broken = connect(), connect(closed=True), connect(broken=True)
    directory.join(closed, "room")
    directory.join(broken, "room")

    sent = await dispatcher.dispatch(sender, PingMessage("room", {}))

    assert sent == 1
    assert closed.ws.sent == [] and broken.ws.sent == []
    # membership cleanup belongs to each connection's close path
    assert directory.room_size("room") == 3
