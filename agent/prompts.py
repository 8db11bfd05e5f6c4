"""
Prompts for the cMindX copy agent.

Each prompt embeds the JSON-encoded behaviour data and the exact JSON shape
the model must answer with.
"""

import json
from typing import Any


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def get_variant_prompt(stats: list, product_name: str = "cMindX") -> str:
    """Prompt for a Build C hero variant from per-variant A/B stats."""
    return f"""You are optimizing a landing page for a product called {product_name}.

You get aggregated A/B stats:
{_dump(stats)}

Pick the best-performing variantId and propose a new "Build C" hero variant based on it.

Return ONLY JSON, no markdown, with this shape:

{{
  "fromVariant": "A",
  "heroTitle": "SELF-EVOLVING WEBSITE // BUILD C",
  "heroSubtitle": "1-2 sentence explanation tuned from the stats.",
  "primaryCta": "Primary button label",
  "secondaryCta": "Secondary button label",
  "badge": "Short label, e.g. AGENT MODE • EVOLUTION",
  "meta": {{
    "basedOn": {{ "variantId": "...", "avgScroll": 0, "clicks": 0 }},
    "explanation": "Short explanation of how behaviour informed this variant."
  }}
}}
"""


def get_landing_spec_prompt(stats: list, product_name: str = "cMindX") -> str:
    """Prompt for the full home-page content spec."""
    return f"""You are designing the full textual content for a SaaS landing page called "{product_name}", an AI agent that rewrites websites based on live behaviour analytics.

You are given aggregated A/B test stats:

{_dump(stats)}

Use these patterns:
- If a variant has high scroll + high clicks, assume its narrative is strong.
- If a variant has high clicks but lower scroll, assume the hero is clear and fast to understand.
- Use that intuition to create a new Build C page spec.

Return ONLY JSON (no markdown fences) matching EXACTLY this shape:

{{
  "hero": {{
    "title": string,
    "subtitle": string,
    "primaryCta": string,
    "secondaryCta": string,
    "badge": string,
    "strip": string
  }},
  "system": {{
    "currentVariantLabel": string,
    "dataSourceLabel": string,
    "agentLabel": string,
    "description": string
  }},
  "pillars": [{{ "label": string, "title": string, "body": string }}],
  "stackPoints": [string],
  "editCards": [{{ "title": string, "body": string }}]
}}

Important style constraints:
- Keep text concise, product-focused and non-cringe.
- The tone should be clear, calm and confident.
- Use British spelling for "optimisation" / "behaviour".
"""


PAGE_SECTIONS_SHAPE = """  "sections": [
    {
      "type": "section",
      "title": "Section title",
      "body": "Short paragraph."
    },
    {
      "type": "bullets",
      "title": "Bullet list title",
      "items": ["Bullet 1", "Bullet 2", "Bullet 3"]
    },
    {
      "type": "section",
      "title": "How it works behind the scenes",
      "body": "Short paragraph."
    },
    {
      "type": "cta",
      "title": "Closing call to action",
      "body": "Short CTA copy encouraging action."
    }
  ]"""


def get_persona_page_prompt(summary: dict, product_name: str = "cMindX") -> str:
    """Prompt for a persona-specific page from the behaviour summary."""
    return f"""You are designing a persona-specific landing page for a product called {product_name}.

You are given high-level behaviour stats from a marketing page:

{_dump(summary)}

From this, infer the *dominant* persona that we should build a dedicated page for.

Examples of persona patterns:
- "Bouncers / skimmers": low scroll, low clicks
- "Explorers / deep readers": high scroll, some clicks
- "High-intent clickers": medium scroll, high clicks
- "Lurkers": mid scroll, low clicks

Choose ONE persona that seems most strategically important and generate a full page definition for them.

Return ONLY valid JSON (no markdown, no extra text) with the following structure:

{{
  "slug": "persona-high-intent",
  "personaName": "High-intent clickers",
  "pageTitle": "{product_name} for High-Intent Visitors",
  "heroTitle": "Turn intent into action on every visit.",
  "heroSubtitle": "1-2 sentences on how {product_name} helps THIS persona, based on the behaviour data.",
  "primaryCta": "Primary CTA label",
  "secondaryCta": "Secondary CTA label",
{PAGE_SECTIONS_SHAPE}
}}

The slug must be kebab-case and start with "persona-".
"""


def get_landing_page_prompt(summary: dict, product_name: str = "cMindX") -> str:
    """Prompt for an experimental landing build from the behaviour summary."""
    return f"""You are designing a new experimental landing page version for a product called {product_name}.

You get summary behaviour metrics from the current page:

{_dump(summary)}

Your job: create a full landing page layout (Build C / Build D style) that is more likely to convert.

Return ONLY valid JSON with this shape, no markdown:

{{
  "slug": "build-c",
  "name": "Build C – higher intent",
  "pageTitle": "{product_name} · Build C",
  "heroTitle": "Your best guess hero line",
  "heroSubtitle": "1-2 sentence supporting copy tuned from the behaviour data.",
  "primaryCta": "Primary CTA label",
  "secondaryCta": "Secondary CTA label",
{PAGE_SECTIONS_SHAPE}
}}
"""
