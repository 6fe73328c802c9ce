"""
QUERIES - Read operations (CQRS)

Queries retrieve data without modifying state. Each query has:
- Query class: Parameters for the read
- Handler class: Executes the read

Subfolders:
- users/         → get_user, get_user_by_name, list_users
- conversations/ → get_conversation, list_conversations
- chat/          → get_chat_history, get_message
"""
