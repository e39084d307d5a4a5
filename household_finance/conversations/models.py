from enum import StrEnum


class AgentType(StrEnum):
    onboarding = "onboarding"
    chat = "chat"


class MessageRole(StrEnum):
    user = "user"
    assistant = "assistant"
