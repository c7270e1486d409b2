"""Prompt templates."""

from stock_health.prompts.templates import PROMPTS, get_prompt, list_prompts

__all__ = ["PROMPTS", "get_prompt", "list_prompts"]
