"""
Tool-calling conversation loop.

One call to :meth:`ConversationLoop.run_turn` takes a user message through
as many completion rounds as the model needs: every response that contains
tool-use blocks is recorded, its tools are executed in order against the
memory service, their results are appended, and the model is asked again.
The first response without tool use ends the turn, and the exchange is
written back to the Zep session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zep_agent.agent.prompts import build_system_prompt
from zep_agent.agent.transcript import Transcript
from zep_agent.llm.base import TextBlock, ToolUseBlock
from zep_agent.memory_service import MemoryServiceError
from zep_agent.tools.executor import ToolError, ToolInvocation
from zep_agent.tools.registry import tools_for_api
from zep_agent.utils.display import display_tool_call

if TYPE_CHECKING:
    from zep_agent.config import Config
    from zep_agent.llm.base import CompletionBackend, CompletionResponse
    from zep_agent.memory_service import MemoryService, Session
    from zep_agent.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

RECOVERY_MESSAGE = (
    "I encountered an issue while processing the information. "
    "Let me try a different approach."
)


class ConversationError(Exception):
    """Raised when a turn cannot reach a final answer."""


class ConversationLoop:
    """Runs user turns through the completion/tool cycle.

    Args:
        llm: Completion backend.
        memory: Memory service used for context and persistence.
        executor: Tool executor bound to the configured user.
        session: The session this run writes into.
        config: Resolved application configuration.
    """

    def __init__(
        self,
        llm: CompletionBackend,
        memory: MemoryService,
        executor: ToolExecutor,
        session: Session,
        config: Config,
    ) -> None:
        self.llm = llm
        self.memory = memory
        self.executor = executor
        self.session = session
        self.config = config

        self.tools = tools_for_api(config.identity.display_name)
        self.turn_count: int = 0
        self.tool_calls: int = 0
        self.last_context: str | None = None

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    def run_turn(self, user_message: str) -> str:
        """Answer one user message.

        Returns:
            The assistant's final text, or :data:`RECOVERY_MESSAGE` when any
            tool failed part-way through a round.

        Raises:
            LLMError: If a completion request fails.
            ConversationError: If the model is still asking for tools after
                ``agent.max_tool_rounds`` rounds.
        """
        self.turn_count += 1
        system = build_system_prompt(
            memory_context=self._memory_context(),
            custom_prompt=self.config.agent.system_prompt,
        )

        transcript = Transcript()
        transcript.add_user_text(user_message)

        response = self._complete(system, transcript)
        answer = response.text
        rounds = 0

        while response.has_tool_use:
            rounds += 1
            if rounds > self.config.agent.max_tool_rounds:
                raise ConversationError(
                    f"Model still requesting tools after "
                    f"{self.config.agent.max_tool_rounds} rounds"
                )

            transcript.add_assistant_content(response.content)

            for block in response.content:
                if isinstance(block, TextBlock):
                    if block.text:
                        answer = block.text
                    continue

                if not self._run_tool(block, transcript):
                    # Remaining tool uses in this response stay unanswered;
                    # the transcript is dropped with the turn.
                    logger.warning(
                        "Abandoning round %d of turn %d after tool failure",
                        rounds,
                        self.turn_count,
                    )
                    return RECOVERY_MESSAGE

            response = self._complete(system, transcript)
            if response.text:
                answer = response.text

        self._persist(user_message, answer)
        return answer

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _memory_context(self) -> str:
        try:
            return self.memory.get_context(self.session.session_id)
        except MemoryServiceError as exc:
            logger.warning("Memory context retrieval failed: %s", exc)
            return ""

    def _complete(self, system: str, transcript: Transcript) -> CompletionResponse:
        return self.llm.complete(
            system=system,
            messages=transcript.to_api(),
            tools=self.tools,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

    def _run_tool(self, block: ToolUseBlock, transcript: Transcript) -> bool:
        """Execute one tool-use block and record its result.

        Returns:
            ``False`` if the tool failed and the round must be abandoned.
        """
        self.tool_calls += 1
        if self.config.display.show_tool_calls:
            display_tool_call(block.name, block.input)

        invocation = ToolInvocation(id=block.id, name=block.name, arguments=block.input)
        try:
            result = self.executor.execute(invocation)
            content = result.content()
        except (ToolError, MemoryServiceError) as exc:
            # Already logged at ERROR by the executor.
            logger.warning("Tool use error (%s): %s", block.name, exc)
            return False
        except Exception as exc:
            logger.warning(
                "Unexpected failure in tool %s: %s", block.name, exc, exc_info=True
            )
            return False

        transcript.add_tool_result(block.id, content, is_error=result.is_error)
        return True

    def _persist(self, user_message: str, answer: str) -> None:
        """Write the finished exchange to the session.

        A failure here is logged and does not cost the user the answer.
        """
        messages = [
            {
                "role_type": "user",
                "role": self.config.identity.display_name,
                "content": user_message,
            },
            {
                "role_type": "assistant",
                "role": "assistant",
                "content": answer,
            },
        ]
        try:
            self.last_context = self.memory.add_messages(
                self.session.session_id,
                messages,
                return_context=True,
            )
        except MemoryServiceError as exc:
            logger.warning("Could not store turn %d in memory: %s", self.turn_count, exc)
