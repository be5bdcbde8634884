"""Configuration loading for zep-agent.

Loads settings from (highest to lowest priority):
    1. CLI arguments
    2. Environment variables (a ``.env`` file in the working directory is
       loaded first)
    3. YAML config file
    4. Defaults
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default paths
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_DIR = Path.home() / ".zep-agent"
DEFAULT_CONFIG_PATH = str(DEFAULT_CONFIG_DIR / "config.yaml")
DEFAULT_MODEL = "claude-sonnet-4-20250514"


# ---------------------------------------------------------------------------
# Configuration error
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


# ---------------------------------------------------------------------------
# Nested configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class IdentityConfig:
    """The single user this deployment talks to."""

    user_id: str = "john.doe"
    email: str = "example@example.com"
    first_name: str = "John"
    last_name: str = "Doe"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.user_id


@dataclass
class AgentConfig:
    """Settings that control the conversation loop."""

    max_tool_rounds: int = 10
    system_prompt: str | None = None


@dataclass
class DisplayConfig:
    """Settings that control terminal display."""

    show_tool_calls: bool = True


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------

@dataclass
class Config:
    """Complete application configuration.

    Constructed via :func:`load_config`, which merges CLI arguments,
    environment variables, a YAML config file, and built-in defaults.
    """

    # Completion service
    model: str = DEFAULT_MODEL
    max_tokens: int = 1024
    temperature: float = 0.0

    # API keys
    anthropic_api_key: str | None = None
    zep_api_key: str | None = None

    # General
    verbose: bool = False

    # Nested sections
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    # CLI-only flags, not read from YAML
    session_id: str | None = None
    show_version: bool = False


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="zep-agent",
        description="Terminal Claude agent with long-term Zep memory",
    )
    parser.add_argument(
        "--model",
        help=f"Anthropic model name (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help=f"Path to config.yaml (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--user-id",
        dest="user_id",
        default=None,
        help="Zep user ID to converse as (default: from config)",
    )
    parser.add_argument(
        "--session-id",
        default=None,
        help="Force a specific Zep session ID (default: one per run)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit",
    )
    return parser


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _load_yaml(path: str | None) -> dict[str, Any]:
    """Load a YAML config file, returning an empty dict on any failure.

    Args:
        path: Filesystem path to the YAML file, or ``None`` to skip.

    Returns:
        Parsed YAML as a dictionary, or an empty dictionary if the file does
        not exist or cannot be parsed.
    """
    if path is None:
        return {}

    config_path = Path(path).expanduser()
    if not config_path.is_file():
        logger.debug("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as exc:
        logger.warning("Failed to parse config file %s: %s", config_path, exc)
        return {}
    except OSError as exc:
        logger.warning("Failed to read config file %s: %s", config_path, exc)
        return {}


def _section(yaml_data: dict[str, Any], name: str) -> dict[str, Any]:
    section = yaml_data.get(name, {})
    return section if isinstance(section, dict) else {}


# ---------------------------------------------------------------------------
# Nested-section helpers
# ---------------------------------------------------------------------------

def _build_identity_config(
    yaml_section: dict[str, Any],
    user_id_override: str | None,
) -> IdentityConfig:
    """Build an :class:`IdentityConfig` from YAML values and overrides.

    Args:
        yaml_section: The ``identity`` section of the YAML config.
        user_id_override: User ID from the CLI or environment, if any.
    """
    cfg = IdentityConfig(
        user_id=yaml_section.get("user_id", IdentityConfig.user_id),
        email=yaml_section.get("email", IdentityConfig.email),
        first_name=yaml_section.get("first_name", IdentityConfig.first_name),
        last_name=yaml_section.get("last_name", IdentityConfig.last_name),
    )
    if user_id_override:
        cfg.user_id = user_id_override
    if not cfg.user_id:
        raise ConfigError("identity.user_id must not be empty")
    return cfg


def _build_agent_config(yaml_section: dict[str, Any]) -> AgentConfig:
    """Build an :class:`AgentConfig` from YAML values."""
    max_rounds = yaml_section.get("max_tool_rounds", AgentConfig.max_tool_rounds)
    try:
        max_rounds = int(max_rounds)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"agent.max_tool_rounds must be an integer, got {max_rounds!r}"
        ) from exc
    if max_rounds < 1:
        raise ConfigError("agent.max_tool_rounds must be at least 1")

    return AgentConfig(
        max_tool_rounds=max_rounds,
        system_prompt=yaml_section.get("system_prompt", AgentConfig.system_prompt),
    )


def _build_display_config(yaml_section: dict[str, Any]) -> DisplayConfig:
    """Build a :class:`DisplayConfig` from YAML values."""
    return DisplayConfig(
        show_tool_calls=yaml_section.get(
            "show_tool_calls", DisplayConfig.show_tool_calls
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_config(argv: list[str] | None = None, dotenv: bool = True) -> Config:
    """Load configuration by merging all sources.

    Priority (highest first):
        1. CLI arguments (from *argv* or ``sys.argv``)
        2. Environment variables
        3. YAML config file
        4. Built-in defaults

    Args:
        argv: Explicit argument list. Pass ``None`` to read from ``sys.argv``.
        dotenv: Load a ``.env`` file into the environment before reading it.
            Existing environment variables are never overwritten.

    Returns:
        A fully-resolved :class:`Config` instance.

    Raises:
        ConfigError: If a configured value is unusable.
    """
    # ---- 1. Parse CLI arguments ----
    parser = _build_parser()
    args = parser.parse_args(argv)

    if dotenv:
        load_dotenv()

    # ---- 2. Load YAML ----
    config_path = args.config_path or DEFAULT_CONFIG_PATH
    yaml_data = _load_yaml(config_path)

    # ---- 3. Resolve each field: CLI -> env -> YAML -> default ----

    model = (
        args.model
        or os.environ.get("ZEP_AGENT_MODEL")
        or yaml_data.get("model")
        or Config.model
    )

    anthropic_api_key = (
        os.environ.get("ANTHROPIC_API_KEY")
        or yaml_data.get("anthropic_api_key")
        or Config.anthropic_api_key
    )

    zep_api_key = (
        os.environ.get("ZEP_API_KEY")
        or yaml_data.get("zep_api_key")
        or Config.zep_api_key
    )

    max_tokens = yaml_data.get("max_tokens", Config.max_tokens)
    temperature = yaml_data.get("temperature", Config.temperature)
    try:
        max_tokens = int(max_tokens)
        temperature = float(temperature)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid completion settings: {exc}") from exc

    verbose: bool
    if args.verbose is not None:
        verbose = args.verbose
    else:
        env_verbose = os.environ.get("ZEP_AGENT_VERBOSE", "").lower()
        if env_verbose in ("1", "true", "yes"):
            verbose = True
        else:
            verbose = bool(yaml_data.get("verbose", Config.verbose))

    # ---- 4. Build nested configs ----
    identity = _build_identity_config(
        _section(yaml_data, "identity"),
        user_id_override=args.user_id or os.environ.get("ZEP_AGENT_USER_ID"),
    )
    agent = _build_agent_config(_section(yaml_data, "agent"))
    display = _build_display_config(_section(yaml_data, "display"))

    # ---- 5. Assemble and return ----
    return Config(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        anthropic_api_key=anthropic_api_key,
        zep_api_key=zep_api_key,
        verbose=verbose,
        identity=identity,
        agent=agent,
        display=display,
        session_id=args.session_id,
        show_version=args.version,
    )
