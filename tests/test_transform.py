"""Tests for reply decode rules."""

import math

import pytest

from redikit import error, reply, transform


def _bulk(*values: str) -> reply.FlatArray:
    return reply.FlatArray(tuple(reply.BulkString(value.encode()) for value in values))


class TestScalars:
    """Tests for scalar rules."""

    def test_boolean(self) -> None:
        """Test the 1/0 convention."""
        assert transform.boolean(reply.Integer(1)) is True
        assert transform.boolean(reply.Integer(0)) is False

    @pytest.mark.parametrize("value", [2, -1])
    def test_boolean_rejects_other_integers(self, value: int) -> None:
        """Test integers other than 0 and 1 are not coerced."""
        with pytest.raises(error.ProtocolError):
            transform.boolean(reply.Integer(value))

    def test_integer_rejects_bulk(self) -> None:
        """Test a numeric bulk string is not an integer reply."""
        with pytest.raises(error.ProtocolError):
            transform.integer(reply.BulkString(b"1"))

    def test_nullable(self) -> None:
        """Test Nil becomes None and other values go through the rule."""
        rule = transform.nullable(transform.string)

        assert rule(reply.NIL) is None
        assert rule(reply.BulkString(b"")) == ""

    def test_string_without_nullable_rejects_nil(self) -> None:
        """Test a plain string rule never turns Nil into an empty string."""
        with pytest.raises(error.ProtocolError):
            transform.string(reply.NIL)

    def test_string_rejects_binary(self) -> None:
        """Test non UTF-8 payloads are only accepted by the blob rule."""
        data = reply.ByteBlob(b"\xff")

        with pytest.raises(error.ProtocolError):
            transform.string(data)
        assert transform.blob(data) == b"\xff"

    def test_ok(self) -> None:
        """Test the OK status is required."""
        transform.ok(reply.Status("OK"))

        with pytest.raises(error.ProtocolError, match="QUEUED"):
            transform.ok(reply.Status("QUEUED"))

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (reply.Double(b"1.5"), 1.5),
            (reply.BulkString(b"10.25"), 10.25),
            (reply.BulkString(b"inf"), math.inf),
            (reply.BulkString(b"-inf"), -math.inf),
        ],
    )
    def test_double(self, data: reply.Reply, expected: float) -> None:
        """Test doubles from RESP3 and from bulk text."""
        assert transform.double(data) == expected

    def test_double_rejects_garbage(self) -> None:
        """Test unparsable text is a protocol error."""
        with pytest.raises(error.ProtocolError):
            transform.double(reply.BulkString(b"abc"))


class TestCollections:
    """Tests for array and paired rules."""

    def test_optional_string_list(self) -> None:
        """Test MGET style replies keep nil positions."""
        data = reply.FlatArray((reply.BulkString(b"a"), reply.NIL))

        assert transform.optional_string_list(data) == ["a", None]

    def test_field_values(self) -> None:
        """Test a flat array is paired in order."""
        assert transform.field_values(_bulk("f1", "v1", "f2", "v2")) == [
            transform.FieldValue("f1", "v1"),
            transform.FieldValue("f2", "v2"),
        ]

    def test_odd_length_is_rejected(self) -> None:
        """Test an odd-length paired array is never truncated."""
        with pytest.raises(error.ProtocolError):
            transform.field_values(_bulk("f1", "v1", "f2"))

    def test_member_scores(self) -> None:
        """Test scores are decoded as floats."""
        assert transform.member_scores(_bulk("a", "1", "b", "2.5")) == [
            transform.MemberScore("a", 1.0),
            transform.MemberScore("b", 2.5),
        ]

    def test_empty_array(self) -> None:
        """Test an empty array is an empty list, not None."""
        assert transform.string_list(reply.FlatArray()) == []
        assert transform.field_value_dict(reply.FlatArray()) == {}

    def test_nil_as_empty(self) -> None:
        """Test Nil decodes to an empty list only when asked for."""
        rule = transform.nil_as_empty(transform.string_list)

        assert rule(reply.NIL) == []
        with pytest.raises(error.ProtocolError):
            transform.string_list(reply.NIL)

    def test_nested_error_is_a_store_error(self) -> None:
        """Test an error inside an ordinary array is raised as ResponseError, not a mismatch."""
        data = reply.FlatArray((reply.BulkString(b"a"), reply.ErrorReply("WRONGTYPE", "nope")))

        with pytest.raises(error.ResponseError) as exc_info:
            transform.string_list(data)

        assert exc_info.value.code == "WRONGTYPE"

    def test_keyed_element(self) -> None:
        """Test the BLPOP reply and its timeout."""
        assert transform.keyed_element(_bulk("queue", "job")) == transform.KeyedElement("queue", "job")
        assert transform.keyed_element(reply.NIL) is None

        with pytest.raises(error.ProtocolError):
            transform.keyed_element(_bulk("queue"))

    def test_keyed_member_score(self) -> None:
        """Test the BZPOPMIN reply."""
        assert transform.keyed_member_score(_bulk("z", "m", "3")) == transform.KeyedMemberScore("z", "m", 3.0)


class TestLcs:
    """Tests for the LCS IDX map."""

    def test_lcs_result(self) -> None:
        """Test matches with and without match lengths."""
        span = lambda start, end: reply.FlatArray((reply.Integer(start), reply.Integer(end)))  # noqa: E731
        data = reply.NestedArray(
            (
                reply.BulkString(b"matches"),
                reply.NestedArray(
                    (
                        reply.NestedArray((span(4, 7), span(5, 8), reply.Integer(4))),
                        reply.NestedArray((span(2, 3), span(0, 1))),
                    ),
                ),
                reply.BulkString(b"len"),
                reply.Integer(6),
            ),
        )

        assert transform.lcs_result(data) == transform.LcsResult(
            matches=[
                transform.LcsMatch((4, 7), (5, 8), 4),
                transform.LcsMatch((2, 3), (0, 1), None),
            ],
            length=6,
        )

    def test_lcs_result_missing_field(self) -> None:
        """Test a map without 'len' is a protocol error."""
        data = reply.NestedArray((reply.BulkString(b"matches"), reply.FlatArray()))

        with pytest.raises(error.ProtocolError):
            transform.lcs_result(data)


class TestExecResults:
    """Tests for positional EXEC decoding."""

    def test_positional_decode(self) -> None:
        """Test every result is decoded with the rule of its position."""
        rule = transform.exec_results([transform.ok, transform.integer, transform.nullable(transform.string)])
        data = reply.FlatArray((reply.Status("OK"), reply.Integer(3), reply.NIL))

        assert rule(data) == [None, 3, None]

    def test_error_in_position(self) -> None:
        """Test a failed command becomes a ResponseError in its slot."""
        rule = transform.exec_results([transform.integer, transform.integer])
        data = reply.FlatArray((reply.ErrorReply("WRONGTYPE", "nope"), reply.Integer(1)))

        results = rule(data)

        assert isinstance(results[0], error.ResponseError)
        assert results[0].code == "WRONGTYPE"
        assert results[1] == 1

    def test_mismatch_in_position(self) -> None:
        """Test a result of the wrong shape becomes a ProtocolError in its slot."""
        rule = transform.exec_results([transform.integer, transform.integer])
        data = reply.FlatArray((reply.BulkString(b"x"), reply.Integer(1)))

        results = rule(data)

        assert isinstance(results[0], error.ProtocolError)
        assert results[1] == 1

    def test_nested_error_in_position(self) -> None:
        """Test an error inside one result's array stays in that slot."""
        rule = transform.exec_results([transform.string_list, transform.integer])
        data = reply.NestedArray((reply.FlatArray((reply.ErrorReply("ERR", "boom"),)), reply.Integer(1)))

        results = rule(data)

        assert isinstance(results[0], error.ResponseError)
        assert results[1] == 1

    def test_length_mismatch(self) -> None:
        """Test a result count different from the queue length is rejected."""
        rule = transform.exec_results([transform.integer])

        with pytest.raises(error.ProtocolError):
            rule(reply.FlatArray((reply.Integer(1), reply.Integer(2))))
