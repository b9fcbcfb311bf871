"""Prompts for content analysis."""

SUMMARY_PROMPT = """
You are a concise summarizer. Create a 2-3 sentence summary that captures the key points
and value of the content. Focus on what makes this content useful or interesting.
Return plain text only. No markdown, no bullet points, no preamble.
""".strip()

CATEGORIZE_PROMPT = """
You categorize web content. Respond with JSON only, no other text.

Categories (pick exactly one):
{categories}

Tags: Generate 2-4 relevant lowercase tags.

Response format: {{"category": "{example}", "tags": ["javascript", "tutorial"]}}
""".strip()

SCORE_PROMPT = """
You rate content quality and actionability. Respond with JSON only.

Quality (1-10): How valuable, well-written, and informative is this content?
- 1-3: Low quality, thin content, spam-like
- 4-6: Average quality, somewhat useful
- 7-9: High quality, valuable information
- 10: Exceptional, must-save content

Actionability (1-10): How likely is this to lead to action or be referenced again?
- 1-3: Passive reading, unlikely to revisit
- 4-6: Might reference later
- 7-9: Will definitely use or act on this
- 10: Immediate action required

Response format: {"quality": 7, "actionability": 5}
""".strip()

DISPLAY_TITLE_PROMPT = """
You write clean, human-readable titles for saved web pages.

Rules:
- Maximum 80 characters.
- Remove site names, platform prefixes and suffixes ("(1) ", "X on X:", "| Medium", "- YouTube").
- Remove URLs, hashtags and emoji.
- Keep the specific subject; do not make it generic.
- Return only the title text. No quotes, no explanation.
""".strip()

INSIGHTS_PROMPT = """
You extract insights from web content. Respond with JSON only.

- takeaways: 3-5 key points, each one short sentence.
- actions: 0-3 concrete things the reader could do next. Use an empty list if none apply.

Response format: {"takeaways": ["...", "..."], "actions": ["..."]}
""".strip()


def format_categories(categories) -> str:
    """Render (name, description) pairs as prompt lines."""
    return "\n".join(
        f"- {c.name}: {c.description}" if c.description else f"- {c.name}" for c in categories
    )
