"""
Built-in lookup tables.

Categorical value lists used by weighted and uniform lookup-table rules.
"""

BUILTIN_LOOKUP_TABLES: dict[str, list[str]] = {
    "content_types": [
        "image",
        "video",
        "carousel",
        "story",
        "reel",
        "live",
        "article",
        "poll",
    ],
    "campaign_platforms": [
        "google_ads",
        "facebook_ads",
        "instagram_ads",
        "linkedin_ads",
        "twitter_ads",
        "youtube_ads",
        "tiktok_ads",
        "snapchat_ads",
    ],
    "customer_segments": [
        "high_value",
        "medium_value",
        "low_value",
        "at_risk",
        "new_customer",
        "loyal_customer",
        "dormant",
        "prospect",
    ],
    "content_categories": [
        "educational",
        "entertainment",
        "promotional",
        "inspirational",
        "news",
        "behind_scenes",
        "user_generated",
        "testimonial",
    ],
    "industry_benchmarks": [
        "technology",
        "healthcare",
        "finance",
        "retail",
        "education",
        "manufacturing",
        "hospitality",
        "real_estate",
        "nonprofit",
    ],
}
