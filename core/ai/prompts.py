from typing import Sequence

LISTING_PROMPT = """You are an expert Indian e-commerce pricing analyst with real-time market knowledge.

TASK: Provide realistic product comparison data for: "{product_name}"

PLATFORMS TO ANALYZE: {platforms}

RESPONSE FORMAT (JSON ONLY, NO OTHER TEXT):
{{
  "platforms": [
    {{
      "platform": "Platform Name",
      "price": <realistic INR price as a number>,
      "rating": <3.0 to 5.0>,
      "reviewCount": <realistic whole number>,
      "seller": "<official seller name>",
      "deliveryTime": "<X-Y days>",
      "returnPolicy": "<platform policy>",
      "warranty": "<warranty details>",
      "offers": "<current offer, or empty string>",
      "availability": "<In Stock | Limited Stock | Out of Stock>"
    }}
  ]
}}

CRITICAL PRICING RULES:
1. Base prices on current Indian market rates
2. Prices must vary 5-15% across platforms (realistic competition)
3. Budget platforms (Meesho, Snapdeal): 15-25% cheaper than the market average
4. Amazon/Flipkart: Market average
5. Premium platforms (Tata CLiQ): 3-8% above the market average
6. Include current festive or bank offers where they exist

REALISTIC CONSTRAINTS:
- Ratings: Not all 4.5+, use a realistic distribution
- Reviews: Vary by platform popularity (Amazon highest)
- Availability: about 75% In Stock, 20% Limited Stock, 5% Out of Stock
- Use exactly the platform names listed above
- Include ONLY platforms that actually sell this product category

EXAMPLE (for reference):
iPhone 15 would be: Amazon ₹79,900, Flipkart ₹79,999, Meesho ₹67,500

Respond ONLY with valid JSON. No explanations, no markdown, just JSON.
"""


def build_listing_prompt(product_name: str, platforms: Sequence[str]) -> str:
    """Instruction asking the model for one entry per platform in a fixed JSON schema."""
    return LISTING_PROMPT.format(product_name=product_name, platforms=", ".join(platforms))
