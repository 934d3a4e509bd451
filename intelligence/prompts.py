"""
Prompt Templates
流水线使用的全部提示词
"""
from typing import Sequence

from models import PainPoint


COMMUNITY_SUGGESTION_PROMPT = """You are an expert Reddit user who knows all the major subreddits. I need to find the best subreddits to search for discussions about "{term}" where people might be complaining or discussing problems.

Please suggest 8-10 relevant subreddits where people would discuss this topic. Consider:
1. Official/brand-specific subreddits
2. Product category subreddits
3. General complaint/problem subreddits
4. Tech/review subreddits
5. Community subreddits where this topic would be discussed

For "{term}", suggest subreddits that are:
- Active and popular
- Likely to have complaints or discussions about this topic
- Real subreddit names (without r/ prefix)

CRITICAL: Return ONLY a valid JSON array with no markdown formatting, no code blocks, no explanations. Just the raw JSON array.

Example format:
["apple", "iphone", "mobilephones", "technology", "complaints"]

JSON array:"""


RELEVANCE_PROMPT = """You are reviewing complaints collected from Reddit while researching pain points about "{term}".

For EACH numbered item below decide:
1. relevant: true only if the complaint is genuinely about "{term}" (not a different product, not an unrelated rant, not an advertisement)
2. restatement: if relevant, restate the underlying pain point in 1-2 clear sentences; otherwise use an empty string

ITEMS:
{items}

RESPONSE FORMAT: return ONLY a JSON array with exactly {count} objects, in the same order as the items:
[
  {{"relevant": true, "restatement": "Users report that ..."}},
  {{"relevant": false, "restatement": ""}}
]"""


CATEGORIZATION_PROMPT = """You are an expert at analyzing customer complaints and pain points. I need you to categorize the following complaints about "{term}" into meaningful categories.

PAIN POINTS TO CATEGORIZE:
{items}

INSTRUCTIONS:
1. Create 5-10 distinct categories that best group these pain points
2. Each category should have a clear, descriptive name (2-4 words)
3. Provide a brief description of what each category represents
4. Assign each pain point to exactly one category by its index number
5. Focus on the core issue or theme, not just keywords

RESPONSE FORMAT (return as JSON):
{{
  "categories": [
    {{
      "name": "Category Name",
      "description": "Brief description of this category",
      "painPointIndexes": [1, 5, 12, 23]
    }}
  ]
}}

Return only the JSON response, no additional text."""


SUMMARY_PROMPT = """Analyze these customer complaints in the "{name}" category and create a concise summary:

COMPLAINTS:
{complaints}

Create a 2-3 sentence summary that:
1. Identifies the main issues customers face
2. Mentions the most common specific problems
3. Uses clear, professional language

Summary:"""


def _quote(text: str) -> str:
    return '"' + str(text or "").replace('"', "'").strip() + '"'


def build_community_prompt(term: str) -> str:
    return COMMUNITY_SUGGESTION_PROMPT.format(term=term)


def build_relevance_prompt(batch: Sequence[PainPoint], term: str) -> str:
    items = "\n".join(f"{idx}. {_quote(point.content)}" for idx, point in enumerate(batch, 1))
    return RELEVANCE_PROMPT.format(term=term, items=items, count=len(batch))


def build_categorization_prompt(window: Sequence[PainPoint], term: str) -> str:
    items = "\n".join(
        f"{idx}: {_quote(point.content)} (engagement: {point.engagement_score})"
        for idx, point in enumerate(window)
    )
    return CATEGORIZATION_PROMPT.format(term=term, items=items)


def build_summary_prompt(name: str, evidence: Sequence[PainPoint]) -> str:
    complaints = "\n".join(_quote(point.content) for point in evidence)
    return SUMMARY_PROMPT.format(name=name, complaints=complaints)
