"""
PropValet Application - Single entry point for the tool execution layer.

Usage:
    from propvalet import PropValet

    app = PropValet("config.yaml")

    result = await app.execute("get_property", {"property_id": "p-1"}, actor_id="owner-1")
    outcome = await app.dispatch(ToolCall("recall", {"context": "pets"}, "owner-1"))

    await app.shutdown()
"""

import logging
from typing import Any, Dict, Optional, Union

from .audit_logger import AuditLogger
from .config import PropValetConfig, load_config
from .models import ToolCall, ToolContext
from .result import ToolResult
from .tools.dispatcher import DispatchOutcome, ToolDispatcher

logger = logging.getLogger(__name__)


class PropValet:
    """
    PropValet Application entry point.

    Sync constructor reads config; async initialization (database pool,
    schema migrations, collaborators) is deferred to the first call.

    Args:
        config: Path to a YAML configuration file, or a PropValetConfig.
    """

    def __init__(self, config: Union[str, PropValetConfig]):
        self._config = load_config(config) if isinstance(config, str) else config
        self._initialized = False

        if not self._config.database:
            raise ValueError("Missing required config field: 'database'")

        # Will be set during lazy initialization
        self._database = None
        self._notifier = None
        self._dispatcher: Optional[ToolDispatcher] = None

    @property
    def config(self) -> PropValetConfig:
        return self._config

    async def _ensure_initialized(self) -> None:
        """Lazy initialization, runs once on the first execute()/dispatch() call."""
        if self._initialized:
            return

        cfg = self._config
        audit = AuditLogger()

        # 1. Database + memory schema
        from .db import Database, ensure_schema
        self._database = Database(dsn=cfg.database)
        await self._database.initialize()
        await ensure_schema(self._database)

        # 2. Semantic memory (embedding backend optional)
        from .memory import (
            DecisionRepository,
            EmbeddingService,
            OpenAIEmbeddingBackend,
            PreferenceRepository,
            SemanticMemory,
        )
        backend = None
        if cfg.embedding.enabled:
            backend = OpenAIEmbeddingBackend(
                api_key=cfg.embedding.api_key,
                model=cfg.embedding.model,
                base_url=cfg.embedding.base_url,
                dimensions=cfg.embedding.dimensions,
            )
            logger.info(f"Embedding backend: provider={cfg.embedding.provider}, model={cfg.embedding.model}")
        else:
            logger.info("No embedding backend configured; memory search will use fallback ordering")
        embeddings = EmbeddingService(backend, cfg.embedding.dimensions, cfg.embedding.max_chars)
        memory = SemanticMemory(
            embeddings,
            PreferenceRepository(self._database),
            DecisionRepository(self._database),
            similarity_threshold=cfg.memory.similarity_threshold,
            recall_limit=cfg.memory.recall_limit,
            precedent_limit=cfg.memory.precedent_limit,
            default_confidence=cfg.memory.default_confidence,
        )

        # 3. Email guard + provider
        from .email import EmailContextGuard, RecipientDirectory, ResendEmailSender
        guard = EmailContextGuard(
            RecipientDirectory(self._database),
            system_address=cfg.email.system_address,
            system_name=cfg.email.system_name,
            persona_domain=cfg.email.persona_domain,
            audit=audit,
        )
        sender = ResendEmailSender(api_key=cfg.email.api_key, api_url=cfg.email.api_url)

        # 4. Notifications
        from .notifications import HttpPushSender, NotificationDispatcher
        push_sender = None
        if cfg.notifications.endpoint:
            push_sender = HttpPushSender(cfg.notifications.endpoint, cfg.notifications.api_key)
        self._notifier = NotificationDispatcher(push_sender)

        # 5. Workflows
        from .workflow import ArrearsLadder, WorkflowOrchestrator, WorkflowStateReader
        workflows = WorkflowOrchestrator(
            WorkflowStateReader(self._database),
            ladder=ArrearsLadder(cfg.workflow.arrears_ladder),
            auto_approve_threshold=cfg.workflow.auto_approve_threshold,
            audit=audit,
        )

        # 6. Dispatcher
        context = ToolContext(
            db=self._database,
            memory=memory,
            email_guard=guard,
            email_sender=sender,
            notifier=self._notifier,
            workflows=workflows,
            settings=cfg,
        )
        self._dispatcher = ToolDispatcher(context, audit=audit)
        logger.info(f"PropValet initialized ({self._dispatcher.implemented_count} tool handlers)")

        self._initialized = True

    async def execute(self, tool_name: str, tool_input: Dict[str, Any], actor_id: str) -> ToolResult:
        await self._ensure_initialized()
        return await self._dispatcher.execute(tool_name, tool_input, actor_id)

    async def dispatch(self, call: ToolCall) -> DispatchOutcome:
        await self._ensure_initialized()
        return await self._dispatcher.dispatch(call)

    async def shutdown(self) -> None:
        """Shut down the application, closing all connections."""
        if not self._initialized:
            return
        try:
            if self._notifier:
                await self._notifier.drain()
            if self._database:
                await self._database.close()
        except Exception as e:
            logger.warning(f"Error during shutdown: {e}")
        finally:
            self._initialized = False
            self._database = None
            self._notifier = None
            self._dispatcher = None
