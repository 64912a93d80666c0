from __future__ import annotations

import secrets
import string

from ..collections import CONVERSATIONS, NOTIFICATIONS
from ..constants import NOTIFY_ALL, NOTIFY_SPECIFIC, SENDER_SUPPORT, SENDER_USER
from ..time_utils import now_iso, sort_key_iso
from . import document_store
from .actions import ValidationError, action_boundary
from .batch_service import WriteBatch
from .document_store import array_union, increment, where


SUPPORT_GREETING = "Hello! How can we help you today?"
VALID_NOTIFICATION_TARGETS = {NOTIFY_ALL, NOTIFY_SPECIFIC}

_MESSAGE_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def new_message_id() -> str:
    suffix = "".join(secrets.choice(_MESSAGE_SUFFIX_ALPHABET) for _ in range(9))
    return f"{now_iso()}{suffix}"


# =============================================================================
# CONVERSATIONS
# =============================================================================

@action_boundary(failure=list)
def get_conversations() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(CONVERSATIONS)]


@action_boundary()
def start_conversation(user_id: str, user_name: str, user_avatar: str | None = None) -> str | None:
    """Open a conversation seeded with the support greeting; returns its id."""
    greeting = {
        "id": new_message_id(),
        "text": SUPPORT_GREETING,
        "sender": SENDER_SUPPORT,
        "timestamp": now_iso(),
    }
    return document_store.insert(CONVERSATIONS, {
        "userId": user_id,
        "userName": user_name,
        "userAvatar": user_avatar,
        "lastMessage": greeting["text"],
        "lastMessageTime": greeting["timestamp"],
        "unreadCount": 1,
        "messages": [greeting],
    })


@action_boundary(failure=False)
def send_message(conversation_id: str, message: dict) -> bool:
    """
    Append a message to a conversation.

    Messages from the user raise the unread counter; a support reply
    resets it.
    """
    stored = {**message, "id": new_message_id()}
    changes = {
        "messages": array_union(stored),
        "lastMessage": message.get("text"),
        "lastMessageTime": message.get("timestamp") or now_iso(),
    }
    sender = message.get("sender")
    if sender == SENDER_USER:
        changes["unreadCount"] = increment(1)
    elif sender == SENDER_SUPPORT:
        changes["unreadCount"] = 0

    document_store.update(CONVERSATIONS, conversation_id, changes)
    return True


@action_boundary(failure=False)
def delete_conversation(conversation_id: str) -> bool:
    document_store.delete(CONVERSATIONS, conversation_id)
    return True


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@action_boundary(failure=False)
def send_notification(message: str, target_type: str, user_id: str | None = None) -> bool:
    if target_type not in VALID_NOTIFICATION_TARGETS:
        raise ValidationError("target_type must be 'all' or 'specific'")
    if target_type == NOTIFY_SPECIFIC and not user_id:
        raise ValidationError("user_id is required for a specific notification")

    document_store.insert(NOTIFICATIONS, {
        "message": message,
        "target": target_type,
        "userId": user_id if target_type == NOTIFY_SPECIFIC else None,
        "timestamp": now_iso(),
        "isRead": False,
    })
    return True


@action_boundary(failure=list)
def get_notifications_for_user(user_id: str) -> list[dict]:
    """Broadcast notifications plus those addressed to the user, newest first."""
    found = {}
    for conditions in ([where("target", "==", NOTIFY_ALL)], [where("userId", "==", user_id)]):
        for snapshot in document_store.query(NOTIFICATIONS, conditions):
            found[snapshot.id] = snapshot.to_dict()
    return sorted(found.values(), key=lambda n: sort_key_iso(n.get("timestamp")), reverse=True)


@action_boundary(failure=False)
def mark_notifications_as_read(notification_ids: list[str]) -> bool:
    batch = WriteBatch()
    for notification_id in notification_ids:
        batch.update(document_store.doc(NOTIFICATIONS, notification_id), {"isRead": True})
    batch.commit()
    return True
