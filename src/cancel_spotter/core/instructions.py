# src/cancel_spotter/core/instructions.py

from __future__ import annotations

"""
Step-by-step cancellation instructions for a site, asked from an LLM.

The LLM is injected (LLMClient port); this module only owns the prompts
and turns a streamed answer into one string.
"""

import logging
from collections.abc import Iterator

from .errors import InstructionsError
from .ports import ChatMessage, LLMClient
from .sites import site_from_url

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that provides clear, accurate instructions for cancelling "
    "subscriptions and memberships. Focus on being specific and detailed."
)


def build_instructions_prompt(site: str) -> str:
    return (
        f"I need step-by-step instructions on how to cancel a subscription for {site}. "
        "Please provide a clear, numbered list of instructions that cover the complete "
        "cancellation process. Include any specific menus, buttons, or pages I need to navigate to. "
        "If there are multiple ways to cancel (website, phone, email), list all methods with "
        "clear instructions for each."
    )


def build_messages(site: str) -> list[ChatMessage]:
    return [{"role": "user", "content": build_instructions_prompt(site)}]


def stream_cancellation_instructions(llm: LLMClient, site_or_url: str) -> Iterator[str]:
    site = site_from_url(site_or_url)
    if not site:
        raise InstructionsError("No website given.")
    logger.info("Asking for cancellation instructions: site=%s", site)
    yield from llm.stream_chat(build_messages(site), SYSTEM_PROMPT)


def get_cancellation_instructions(llm: LLMClient, site_or_url: str) -> str:
    try:
        text = "".join(stream_cancellation_instructions(llm, site_or_url)).strip()
    except InstructionsError:
        raise
    except Exception as e:
        raise InstructionsError(f"Failed to get cancellation instructions: {e}") from e
    if not text:
        raise InstructionsError("Failed to get cancellation instructions: empty answer.")
    return text
