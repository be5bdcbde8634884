"""
Entry point for the zep-agent CLI.

Run with::

    python -m zep_agent
    zep-agent --user-id jane.doe --verbose

Configuration priority (highest to lowest):

1. CLI arguments
2. Environment variables (``ANTHROPIC_API_KEY``, ``ZEP_API_KEY``, ...),
   including a ``.env`` file in the working directory
3. YAML configuration file
4. Built-in defaults

This module wires the components together, bootstraps the Zep user and
session, and starts the shell.
"""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _check_api_keys(config: object) -> bool:
    """Verify that both service credentials are configured.

    Returns:
        ``True`` if both keys are available, ``False`` otherwise.
    """
    missing = []
    if not getattr(config, "anthropic_api_key", None):
        missing.append("ANTHROPIC_API_KEY")
    if not getattr(config, "zep_api_key", None):
        missing.append("ZEP_API_KEY")

    for name in missing:
        print(
            f"\n  Error: {name} not found.\n"
            f"  Set {name} in your environment, a .env file, or the config file.\n"
        )
    return not missing


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    """Parse arguments, bootstrap memory, and start the interactive shell.

    Exits with status 1 on any startup failure and 0 otherwise.
    """
    # --- Load configuration (handles its own CLI parsing) ---
    from zep_agent.config import ConfigError, load_config

    try:
        config = load_config()
    except ConfigError as exc:
        print(f"\n  Error loading configuration: {exc}\n")
        sys.exit(1)

    if config.show_version:
        from zep_agent import __version__

        print(f"zep-agent {__version__}")
        return

    # --- Logging ---
    from zep_agent.utils.logger import setup_logging

    setup_logging(verbose=config.verbose)

    # --- API key check ---
    if not _check_api_keys(config):
        sys.exit(1)

    # --- Service clients ---
    from zep_agent.llm import LLMError, create_backend
    from zep_agent.memory_service import Identity, MemoryService, MemoryServiceError

    try:
        llm = create_backend(config)
        memory = MemoryService(api_key=config.zep_api_key)
    except (LLMError, MemoryServiceError) as exc:
        print(f"\n  Error initialising services: {exc}\n")
        logger.exception("Service initialisation failed")
        sys.exit(1)

    # --- Identity and session ---
    from zep_agent.agent.session import BootstrapError, SessionBootstrap, new_session_id

    identity = Identity(
        user_id=config.identity.user_id,
        email=config.identity.email,
        first_name=config.identity.first_name,
        last_name=config.identity.last_name,
    )
    bootstrap = SessionBootstrap(
        memory=memory,
        identity=identity,
        session_id=config.session_id or new_session_id(),
    )
    try:
        session = bootstrap.ensure_ready()
    except BootstrapError as exc:
        print(f"\n  Error preparing memory: {exc}\n")
        logger.exception("Bootstrap failed")
        sys.exit(1)

    # --- Conversation loop and shell ---
    from zep_agent.agent.loop import ConversationLoop
    from zep_agent.agent.shell import Shell
    from zep_agent.tools.executor import ToolExecutor
    from zep_agent.utils.display import display_welcome

    loop = ConversationLoop(
        llm=llm,
        memory=memory,
        executor=ToolExecutor(memory, user_id=session.user_id),
        session=session,
        config=config,
    )

    display_welcome(
        user_name=config.identity.display_name,
        session_id=session.session_id,
        backend_name=llm.name(),
    )
    sys.exit(Shell(loop).run())


if __name__ == "__main__":
    main()
