# src/cancel_spotter/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no API key is configured.

    Answers every request with generic cancellation steps plus a hint on how to
    enable real answers. No network calls.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        yield (
            "Offline mode: no LLM API key is configured.\n"
            "Set CANCEL_SPOTTER_OPENAI_API_KEY (or OPENAI_API_KEY) for site-specific steps.\n\n"
            "General steps:\n"
            "1. Sign in and open your account, profile or settings page.\n"
            "2. Look for Membership, Subscription, Plan or Billing.\n"
            "3. Choose Cancel / End membership and confirm every follow-up screen.\n"
            "4. Keep the confirmation email or screenshot.\n"
            "5. If the site bills through an app store or a partner, cancel there instead.\n"
        )
