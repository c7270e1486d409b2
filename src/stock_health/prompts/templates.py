"""Prompt templates for MCP prompts."""

from typing import Any

PROMPTS = {
    "health_check": {
        "description": "Quick health check with score, recommendation and reasoning",
        "arguments": [{"name": "symbol", "required": True}],
    },
    "compare_health": {
        "description": "Compare health scores across several symbols",
        "arguments": [{"name": "symbols", "required": True}],
    },
}


def list_prompts() -> list[dict[str, Any]]:
    """List available prompts."""
    return [
        {
            "name": name,
            "description": info["description"],
            "arguments": info["arguments"],
        }
        for name, info in PROMPTS.items()
    ]


def get_prompt(name: str, arguments: dict[str, str]) -> dict[str, Any] | None:
    """
    Get a prompt by name with arguments filled in.

    Returns dict with 'messages' key for MCP GetPromptResult.
    """
    if name not in PROMPTS:
        return None

    if name == "health_check":
        symbol = arguments.get("symbol", "")
        content = f"""Run a health check on {symbol}.

1. Call analyze_symbol("{symbol}") with the default mode.
2. Lead with the health score (0-100) and the recommendation.
3. Show technical, fundamental and risk scores as a small table.
4. Quote the reasoning field verbatim; do not reorder its parts.
5. List strengths, weaknesses, opportunities and threats if non-empty.
6. State the confidence and explain it reflects data completeness.
7. If degraded=true, say the analysis could not be completed and show the summary."""
    else:
        symbols = arguments.get("symbols", "")
        content = f"""Compare the health of: {symbols}.

1. Call analyze_symbols with the symbol list.
2. Rank by health score, showing recommendation and confidence.
3. Call out any degraded results separately with their summary."""

    return {"messages": [{"role": "user", "content": content}]}
