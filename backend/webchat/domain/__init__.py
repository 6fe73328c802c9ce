"""
DOMAIN LAYER

This layer contains:
- Entities: Business objects with identity (User, Conversation, Membership, Message)
- Value Objects: Immutable types (UserId, Username, ConversationId, MessageId)
- Ports: Repository interfaces that infrastructure implements
- Exceptions: Domain-specific errors

RULES:
1. NO framework imports (no FastAPI, SQLAlchemy, Pydantic, etc.)
2. NO I/O operations (no database, no HTTP, no file system)
3. Only depends on Python stdlib
"""
