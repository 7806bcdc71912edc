import pytest

from pagecraft.conversation import ConversationStore, Message, Role
from pagecraft.errors import RequestValidationError


def test_empty_store_is_valid_initial_state():
    store = ConversationStore()
    assert store.is_empty
    assert len(store) == 0
    assert store.all() == ()
    assert store.last() is None


def test_append_adds_exactly_one_and_keeps_prior_entries():
    store = ConversationStore([Message(Role.USER, "make a page"), Message(Role.ASSISTANT, "ok")])
    before = store.all()

    store.append(Message(Role.USER, "make it blue"))

    assert len(store) == len(before) + 1
    assert store.all()[: len(before)] == before
    assert store.last() == Message(Role.USER, "make it blue")


def test_all_returns_snapshot_that_cannot_mutate_store():
    store = ConversationStore([Message(Role.USER, "hi")])
    snapshot = store.all()
    store.append(Message(Role.ASSISTANT, "hello"))
    assert len(snapshot) == 1
    assert len(store) == 2


def test_messages_are_immutable():
    message = Message(Role.USER, "hi")
    with pytest.raises(AttributeError):
        message.content = "changed"


def test_append_rejects_non_messages():
    store = ConversationStore()
    with pytest.raises(RequestValidationError):
        store.append({"role": "user", "content": "hi"})
    assert store.is_empty


@pytest.mark.parametrize(
    "wire,expected",
    [
        ("user", Role.USER),
        ("assistant", Role.ASSISTANT),
        ("model", Role.ASSISTANT),
        ("USER", Role.ASSISTANT),
        ("", Role.ASSISTANT),
    ],
)
def test_role_from_wire_defaults_to_assistant(wire, expected):
    assert Role.from_wire(wire) is expected


def test_from_wire_preserves_order():
    store = ConversationStore.from_wire(
        [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "second"},
            {"role": "user", "content": "third"},
        ]
    )
    assert [m.content for m in store] == ["first", "second", "third"]
    assert [m.role for m in store] == [Role.USER, Role.ASSISTANT, Role.USER]
