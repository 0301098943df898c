import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .models import Chat, ChatMessage


class ChatStore:
    """Conversation records, scoped per user and keyed by an opaque chat id."""

    def __init__(self):
        self._chats: Dict[Tuple[str, str], Chat] = {}
        self._lock = threading.Lock()

    def list_chats(self, user_id: str, limit: int = 50) -> List[Chat]:
        # Saving re-inserts, so dict order is update order.
        with self._lock:
            chats = [c for (uid, _), c in reversed(self._chats.items()) if uid == user_id]
        return chats[:limit]

    def get_chat(self, user_id: str, chat_id: str) -> Optional[Chat]:
        with self._lock:
            return self._chats.get((user_id, chat_id))

    def save_chat(self, user_id: str, chat_id: str, title: str, messages: List[ChatMessage]) -> Chat:
        now = datetime.now(timezone.utc)
        with self._lock:
            existing = self._chats.pop((user_id, chat_id), None)
            chat = Chat(
                chat_id=chat_id,
                user_id=user_id,
                title=title,
                messages=list(messages),
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._chats[(user_id, chat_id)] = chat
        return chat

    def delete_chat(self, user_id: str, chat_id: str) -> bool:
        with self._lock:
            return self._chats.pop((user_id, chat_id), None) is not None


store = ChatStore()
