from __future__ import annotations

from datetime import datetime

from logship.core.identity import StreamIdentity, current_stream_name, generate_salt


def test_stream_name_format_uses_zero_based_month_and_fixed_minutes() -> None:
    now = datetime(2024, 1, 5, 9, 42, 17)
    assert current_stream_name(now, "abc") == "5/0/2024-9-00-abc"


def test_december_renders_as_month_eleven() -> None:
    now = datetime(2023, 12, 31, 23, 59, 59)
    assert current_stream_name(now, "s") == "31/11/2023-23-00-s"


def test_same_hour_same_salt_yields_same_name() -> None:
    a = current_stream_name(datetime(2024, 6, 1, 14, 0, 0), "salt")
    b = current_stream_name(datetime(2024, 6, 1, 14, 59, 59), "salt")
    assert a == b


def test_different_hour_or_salt_yields_different_name() -> None:
    base = datetime(2024, 6, 1, 14, 30)
    assert current_stream_name(base, "x") != current_stream_name(
        datetime(2024, 6, 1, 15, 30), "x"
    )
    assert current_stream_name(base, "x") != current_stream_name(base, "y")


def test_generate_salt_is_random_hex() -> None:
    first, second = generate_salt(), generate_salt()
    assert first != second
    int(first, 16)
    assert len(first) == 12


def test_first_observation_sets_name() -> None:
    identity = StreamIdentity()
    assert identity.name is None
    assert identity.observe("stream-a") is True
    assert identity.name == "stream-a"
    assert identity.sequence_token is None


def test_same_name_keeps_token() -> None:
    identity = StreamIdentity()
    identity.observe("stream-a")
    identity.set_token("t1")
    assert identity.observe("stream-a") is False
    assert identity.sequence_token == "t1"


def test_rollover_clears_token() -> None:
    identity = StreamIdentity()
    identity.observe("stream-a")
    identity.set_token("t1")
    assert identity.observe("stream-b") is True
    assert identity.name == "stream-b"
    assert identity.sequence_token is None


def test_empty_token_is_treated_as_absent() -> None:
    identity = StreamIdentity()
    identity.set_token("")
    assert identity.sequence_token is None
    identity.set_token("t2")
    identity.clear_token()
    assert identity.sequence_token is None
    assert "has_token=False" in repr(identity)
