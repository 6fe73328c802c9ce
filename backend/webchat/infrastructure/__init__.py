"""
Infrastructure Layer - Technical implementations of domain ports.

This layer contains:
- persistence/: Database implementations (SQLAlchemy repositories)
- cache/: Redis caching implementations (ConversationCache and cached repositories)
"""
