"""Abstract interfaces for infrastructure abstraction."""

from carechat.interfaces.conversation_store import IConversationStore
from carechat.interfaces.inference_gateway import IInferenceGateway
from carechat.interfaces.llm_provider import ILLMProvider
from carechat.interfaces.session_commands import ISessionCommands

__all__ = [
    "IConversationStore",
    "IInferenceGateway",
    "ILLMProvider",
    "ISessionCommands",
]
