"""Tests for ssrgate.upgrade — identity-keyed upgrade correlation."""

from ssrgate.http.response import Response
from ssrgate.upgrade import UpgradeTable, WebSocketHandler


class _Echo:
    def message(self, ws, data):
        return None


class TestUpgradeTable:
    def test_mark_returns_same_response(self) -> None:
        table = UpgradeTable()
        response = Response("switching")
        assert table.mark(response, _Echo()) is response
        assert response in table
        assert len(table) == 1

    def test_pop_returns_data_once(self) -> None:
        table = UpgradeTable()
        response = Response()
        handler = _Echo()
        table.mark(response, handler)

        assert table.pop(response) is handler
        assert table.pop(response) is None
        assert len(table) == 0

    def test_identity_not_equality(self) -> None:
        table = UpgradeTable()
        marked = Response("same")
        lookalike = Response("same")
        assert marked == lookalike

        table.mark(marked, _Echo())
        assert lookalike not in table
        assert table.pop(lookalike) is None
        assert marked in table

    def test_unmarked_response(self) -> None:
        assert UpgradeTable().pop(Response()) is None


class TestWebSocketHandlerProtocol:
    def test_message_is_enough(self) -> None:
        assert isinstance(_Echo(), WebSocketHandler)

    def test_object_without_message(self) -> None:
        assert not isinstance(object(), WebSocketHandler)
