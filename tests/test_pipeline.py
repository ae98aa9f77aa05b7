import pytest

from epang.pipeline import Stage, Token, TokenStatus, VoidToken


def test_token_starts_valid():
    token = Token()
    assert token.status is TokenStatus.DATA
    assert token.valid() is True


def test_mark_last_true_ends_stream():
    token = Token()
    token.mark_last(True)
    assert token.status is TokenStatus.END
    assert token.valid() is False


def test_mark_last_false_keeps_status():
    token = Token()
    token.mark_last(False)
    assert token.valid() is True
    ended = Token(TokenStatus.END)
    ended.mark_last(False)
    assert ended.status is TokenStatus.END


def test_void_token_is_empty():
    token = VoidToken()
    token.clear()
    assert len(token) == 0
    assert token.valid() is True


def test_stage_process_uses_function():
    stage = Stage(2, lambda x: [x, x])
    assert stage.process("a") == ["a", "a"]
    assert stage.stage_id == 2
    assert stage.active is True


def test_stage_accept_and_put_call_callbacks():
    accepted = []
    put = []
    stage = Stage(0, lambda x: x, accept=accepted.append, put=put.append)
    stage.accept("in")
    stage.put("out")
    assert accepted == ["in"]
    assert put == ["out"]


@pytest.mark.parametrize("value", [1, "x", None])
def test_stage_default_accept_and_put_return_none(value):
    stage = Stage(1, lambda x: x)
    assert stage.accept(value) is None
    assert stage.put(value) is None
    assert stage.process(value) == value