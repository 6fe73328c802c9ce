"""
Dishka DI Container Setup.

- Registers all dependencies (engine, cache, hub, repositories, handlers)
- Maps abstract repository ports to the cached decorators, which wrap the
  SQLAlchemy implementations; callers never know a cache exists
- Manages lifecycle: APP = one per process, REQUEST = one per HTTP request
  (or per WebSocket command)

Flow:
  Container → SqlAlchemyConversationRepository → CachedConversationRepository
                                                        ↓
                                   ConversationRepository → GetConversationHandler
"""

from typing import AsyncIterator

from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from webchat.application.commands.chat import (
    AcknowledgeMessageHandler,
    MarkReadHandler,
    SendMessageHandler,
    UpdateMessageStatusHandler,
)
from webchat.application.commands.conversations import (
    AddMemberHandler,
    CreateConversationHandler,
    RemoveMemberHandler,
)
from webchat.application.commands.users import (
    CreateUserHandler,
    DeleteUserHandler,
    RenameUserHandler,
)
from webchat.application.queries.chat import GetChatHistoryHandler, GetMessageHandler
from webchat.application.queries.conversations import (
    GetConversationHandler,
    ListAllConversationsHandler,
    ListUserConversationsHandler,
)
from webchat.application.queries.users import (
    GetUserByNameHandler,
    GetUserHandler,
    ListUsersHandler,
)
from webchat.config.settings import Config
from webchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from webchat.infrastructure.cache import (
    CachedConversationRepository,
    CachedMessageRepository,
    CachedUserRepository,
    ConversationCache,
    close_redis_client,
    create_redis_client,
)
from webchat.infrastructure.persistence import (
    SqlAlchemyConversationRepository,
    SqlAlchemyMessageRepository,
    SqlAlchemyUserRepository,
    create_engine,
    create_session_factory,
    dispose_engine,
    init_models,
)
from webchat.realtime.hub import Hub


class AppProvider(Provider):
    """
    Application dependency provider.

    Args:
        config: Config class to read settings from (Config, TestingConfig, ...)
    """

    def __init__(self, config: type[Config] = Config):
        super().__init__()
        self._config = config

    # ==================== DATABASE ====================

    @provide(scope=Scope.APP)
    async def get_engine(self) -> AsyncIterator[AsyncEngine]:
        """
        Provide the SQLAlchemy engine (singleton, app-scoped).

        Tables are created on first use; the engine is disposed when the
        container closes.
        """
        engine = create_engine(self._config.DATABASE_URL, echo=self._config.DATABASE_ECHO)
        await init_models(engine)
        yield engine
        await dispose_engine(engine)

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # ==================== CACHE ====================

    @provide(scope=Scope.APP)
    async def get_redis(self) -> AsyncIterator[Redis]:
        client = await create_redis_client(self._config.REDIS_URL)
        yield client
        await close_redis_client(client)

    @provide(scope=Scope.APP)
    def get_conversation_cache(self, redis: Redis) -> ConversationCache:
        return ConversationCache(
            redis,
            conversation_ttl=self._config.CONVERSATION_CACHE_TTL,
            user_conversations_ttl=self._config.USER_CONVERSATIONS_CACHE_TTL,
        )

    # ==================== REAL-TIME ====================

    @provide(scope=Scope.APP)
    def get_hub(self) -> Hub:
        """One hub per process: rooms and presence live in its memory."""
        return Hub()

    # ==================== REPOSITORIES ====================

    @provide(scope=Scope.REQUEST)
    def get_conversation_repository(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ConversationCache,
    ) -> ConversationRepository:
        """
        - Return type is ABSTRACT (ConversationRepository)
        - Implementation is the cache decorator around the SQLAlchemy repository
        """
        return CachedConversationRepository(
            SqlAlchemyConversationRepository(session_factory), cache
        )

    @provide(scope=Scope.REQUEST)
    def get_message_repository(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ConversationCache,
    ) -> MessageRepository:
        return CachedMessageRepository(
            SqlAlchemyMessageRepository(session_factory),
            SqlAlchemyConversationRepository(session_factory),
            cache,
        )

    @provide(scope=Scope.REQUEST)
    def get_user_repository(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ConversationCache,
    ) -> UserRepository:
        return CachedUserRepository(
            SqlAlchemyUserRepository(session_factory),
            SqlAlchemyConversationRepository(session_factory),
            cache,
        )

    # ==================== USER HANDLERS ====================

    @provide(scope=Scope.REQUEST)
    def get_create_user_handler(self, user_repository: UserRepository) -> CreateUserHandler:
        return CreateUserHandler(user_repository)

    @provide(scope=Scope.REQUEST)
    def get_rename_user_handler(self, user_repository: UserRepository) -> RenameUserHandler:
        return RenameUserHandler(user_repository)

    @provide(scope=Scope.REQUEST)
    def get_delete_user_handler(self, user_repository: UserRepository) -> DeleteUserHandler:
        return DeleteUserHandler(user_repository)

    @provide(scope=Scope.REQUEST)
    def get_user_handler(self, user_repository: UserRepository) -> GetUserHandler:
        return GetUserHandler(user_repository)

    @provide(scope=Scope.REQUEST)
    def get_user_by_name_handler(
        self, user_repository: UserRepository
    ) -> GetUserByNameHandler:
        return GetUserByNameHandler(user_repository)

    @provide(scope=Scope.REQUEST)
    def get_list_users_handler(self, user_repository: UserRepository) -> ListUsersHandler:
        return ListUsersHandler(user_repository)

    # ==================== CONVERSATION HANDLERS ====================

    @provide(scope=Scope.REQUEST)
    def get_create_conversation_handler(
        self,
        conversation_repository: ConversationRepository,
        user_repository: UserRepository,
    ) -> CreateConversationHandler:
        return CreateConversationHandler(conversation_repository, user_repository)

    @provide(scope=Scope.REQUEST)
    def get_add_member_handler(
        self, conversation_repository: ConversationRepository
    ) -> AddMemberHandler:
        return AddMemberHandler(conversation_repository)

    @provide(scope=Scope.REQUEST)
    def get_remove_member_handler(
        self, conversation_repository: ConversationRepository
    ) -> RemoveMemberHandler:
        return RemoveMemberHandler(conversation_repository)

    @provide(scope=Scope.REQUEST)
    def get_conversation_handler(
        self, conversation_repository: ConversationRepository
    ) -> GetConversationHandler:
        return GetConversationHandler(conversation_repository)

    @provide(scope=Scope.REQUEST)
    def get_list_user_conversations_handler(
        self, conversation_repository: ConversationRepository
    ) -> ListUserConversationsHandler:
        return ListUserConversationsHandler(conversation_repository)

    @provide(scope=Scope.REQUEST)
    def get_list_all_conversations_handler(
        self, conversation_repository: ConversationRepository
    ) -> ListAllConversationsHandler:
        return ListAllConversationsHandler(conversation_repository)

    # ==================== CHAT HANDLERS ====================

    @provide(scope=Scope.REQUEST)
    def get_send_message_handler(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
        user_repository: UserRepository,
        hub: Hub,
    ) -> SendMessageHandler:
        return SendMessageHandler(
            conv_repo=conversation_repository,
            msg_repo=message_repository,
            user_repo=user_repository,
            hub=hub,
        )

    @provide(scope=Scope.REQUEST)
    def get_chat_history_handler(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
    ) -> GetChatHistoryHandler:
        return GetChatHistoryHandler(
            conv_repo=conversation_repository,
            msg_repo=message_repository,
        )

    @provide(scope=Scope.REQUEST)
    def get_message_handler(self, message_repository: MessageRepository) -> GetMessageHandler:
        return GetMessageHandler(message_repository)

    @provide(scope=Scope.REQUEST)
    def get_update_message_status_handler(
        self, message_repository: MessageRepository, hub: Hub
    ) -> UpdateMessageStatusHandler:
        return UpdateMessageStatusHandler(message_repository, hub)

    @provide(scope=Scope.REQUEST)
    def get_acknowledge_message_handler(
        self, message_repository: MessageRepository, hub: Hub
    ) -> AcknowledgeMessageHandler:
        return AcknowledgeMessageHandler(message_repository, hub)

    @provide(scope=Scope.REQUEST)
    def get_mark_read_handler(
        self, message_repository: MessageRepository, hub: Hub
    ) -> MarkReadHandler:
        return MarkReadHandler(message_repository, hub)


def create_container(config: type[Config] = Config, *providers: Provider) -> AsyncContainer:
    """
    Create and configure the DI container.

    Extra providers are registered after AppProvider and override it, which
    is how tests swap Redis for an in-process fake.
    """
    return make_async_container(AppProvider(config), *providers)
