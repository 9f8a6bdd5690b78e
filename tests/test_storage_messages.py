"""Direct messaging between two users."""

from __future__ import annotations

from models import InsertMessage


def _send(storage, conversation, sender, body):
    return storage.create_message(InsertMessage(conversation_id=conversation.id, sender_id=sender.id, body=body))


def test_conversation_is_shared_by_both_orderings(storage, make_user):
    a, b = make_user(), make_user()
    first = storage.create_conversation(a.id, b.id)
    second = storage.create_conversation(b.id, a.id)

    assert first.id == second.id
    assert storage.find_conversation_between(b.id, a.id).id == first.id
    assert [c.id for c in storage.get_conversations_for_user(a.id)] == [first.id]
    assert [c.id for c in storage.get_conversations_for_user(b.id)] == [first.id]


def test_messages_chronological_with_limit(storage, make_user):
    a, b = make_user(), make_user()
    conversation = storage.create_conversation(a.id, b.id)
    sent = [_send(storage, conversation, a if i % 2 == 0 else b, f"message {i}") for i in range(3)]

    assert [m.id for m in storage.get_messages(conversation.id)] == [m.id for m in sent]
    # The limit keeps the most recent messages, still oldest first
    assert [m.id for m in storage.get_messages(conversation.id, limit=2)] == [sent[1].id, sent[2].id]


def test_messages_before_cutoff(storage, make_user):
    a, b = make_user(), make_user()
    conversation = storage.create_conversation(a.id, b.id)
    sent = [_send(storage, conversation, a, f"message {i}") for i in range(3)]
    cutoff = sent[2].created_at

    older = storage.get_messages(conversation.id, before=cutoff)
    assert sent[2].id not in [m.id for m in older]
    assert all(m.created_at < cutoff for m in older)


def test_sender_cannot_mark_own_message_read(storage, make_user):
    a, b = make_user(), make_user()
    conversation = storage.create_conversation(a.id, b.id)
    message = _send(storage, conversation, a, "Are you at the charger?")

    unchanged = storage.mark_message_read(conversation.id, message.id, a.id)
    assert unchanged.is_read is False
    assert unchanged.read_at is None

    read = storage.mark_message_read(conversation.id, message.id, b.id)
    assert read.is_read is True
    assert read.read_at is not None

    assert storage.mark_message_read("other-conversation", message.id, b.id) is None


def test_unread_count_only_counts_incoming(storage, make_user):
    a, b, c = make_user(), make_user(), make_user()
    with_b = storage.create_conversation(a.id, b.id)
    with_c = storage.create_conversation(c.id, a.id)
    _send(storage, with_b, b, "hi")
    _send(storage, with_b, a, "hello")
    incoming = _send(storage, with_c, c, "stall 4 is free")

    assert storage.get_unread_message_count(a.id) == 2
    assert storage.get_unread_message_count(b.id) == 1

    storage.mark_message_read(with_c.id, incoming.id, a.id)
    assert storage.get_unread_message_count(a.id) == 1
