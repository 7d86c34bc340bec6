import logging

import pytest

from veloxdfs.messages import FileDel, FileExist, Reply
from veloxdfs.router import NetObserver, Router, RouterDecorator, SimpleRouter


class _Recorder(Router):
    def __init__(self):
        super().__init__()
        self.seen = []

    def on_read(self, message, channel):
        self.seen.append((message, channel))


def test_observer_and_router_are_abstract():
    with pytest.raises(TypeError):
        NetObserver()
    with pytest.raises(TypeError):
        Router()


def test_decorator_uses_own_route():
    inner = _Recorder()
    decorator = RouterDecorator(inner)
    handled = []
    decorator.add_route("Reply", lambda m, c: handled.append((m, c)))
    message = Reply(message="ok")
    channel = object()
    decorator.on_read(message, channel)
    assert handled == [(message, channel)]
    assert inner.seen == []


def test_decorator_passes_unknown_type_on():
    inner = _Recorder()
    decorator = RouterDecorator(inner)
    decorator.add_route("Reply", lambda m, c: None)
    message = FileDel(name="f")
    decorator.on_read(message, "chan")
    assert inner.seen == [(message, "chan")]


def test_chain_of_decorators_routes_to_matching_level():
    inner = _Recorder()
    hits = []
    outer = RouterDecorator(RouterDecorator(inner))
    outer.router.add_route("FileExist", lambda m, c: hits.append(("middle", m.name)))
    outer.add_route("FileDel", lambda m, c: hits.append(("outer", m.name)))
    outer.on_read(FileExist(name="a"), None)
    outer.on_read(FileDel(name="b"), None)
    outer.on_read(Reply(), None)
    assert hits == [("middle", "a"), ("outer", "b")]
    assert [m.get_type() for m, _ in inner.seen] == ["Reply"]


def test_simple_router_logs_unhandled_type(caplog):
    caplog.set_level(logging.ERROR, logger="veloxdfs.router")
    SimpleRouter().on_read(FileExist(name="x"), None)
    assert any(
        "could not find a handler" in r.getMessage() and "FileExist" in r.getMessage()
        for r in caplog.records
    )


def test_add_route_replaces_previous_handler():
    decorator = RouterDecorator(SimpleRouter())
    calls = []
    decorator.add_route("Reply", lambda m, c: calls.append("first"))
    decorator.add_route("Reply", lambda m, c: calls.append("second"))
    decorator.on_read(Reply(), None)
    assert calls == ["second"]