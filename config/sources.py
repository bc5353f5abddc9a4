# config/sources.py
# Source catalogue for the newsroom collector
# ===========================================

"""
Every source the collector can scrape is described here as data. A source
entry tells the generic page collector where the section listing lives, how
to pick article links out of it and which selectors hold the headline,
excerpt, category and body on an article page.

Fields:
- name: human readable label
- network: publisher family, used to share selector sets
- listing_url: section page with the latest articles
- link_selectors: CSS selectors tried in order on the listing page
- url_must_contain: substring every accepted article URL must contain
- exclude_title_terms: link texts that mark navigation rather than articles
- category: fallback category when the page has none
"""

from __future__ import annotations

from typing import Any, Dict

# Selector sets per publisher
# ===========================
# Article pages of one publisher share markup, so sections only override
# the listing side.

_META_DESCRIPTION = 'meta[name="description"], meta[property="og:description"]'

AP_NEWS_PAGE = {
    "title_selectors": ["h1.Page-headline", "h1"],
    "description_selectors": [_META_DESCRIPTION],
    "body_container_selectors": [".RichTextStoryBody", ".RichTextBody", ".Page-storyBody"],
    "body_fallback_selectors": [".Page-main p", "main p"],
    "breadcrumb_selectors": [".Breadcrumb a", ".breadcrumb a", "nav[aria-label='Breadcrumb'] a"],
    "use_json_ld": True,
}

YAHOO_PAGE = {
    "title_selectors": ["article h1", ".caas-title", "h1"],
    "description_selectors": [_META_DESCRIPTION],
    "body_container_selectors": ['div[data-article-body="true"]', ".caas-body", "article"],
    "body_fallback_selectors": ["article p", "main article p"],
    "breadcrumb_selectors": [],
    "use_json_ld": True,
}

CBS_PAGE = {
    "title_selectors": ["h1.content__title", "h1"],
    "description_selectors": [_META_DESCRIPTION],
    "body_container_selectors": [".content__body", ".article-body", "article"],
    "body_fallback_selectors": ["main p", ".content p"],
    "breadcrumb_selectors": [".breadcrumb a", "nav[aria-label='Breadcrumb'] a"],
    "use_json_ld": True,
}

ABC_PAGE = {
    "title_selectors": ["h1[data-testid='Heading']", "h1.article-title", "h1"],
    "description_selectors": [_META_DESCRIPTION],
    "body_container_selectors": [".article-body", ".article-content", "article"],
    "body_fallback_selectors": ["main p", ".content p", "[data-testid='ArticleBody'] p"],
    "breadcrumb_selectors": [".breadcrumb a", "nav[aria-label='Breadcrumb'] a"],
    "use_json_ld": True,
}

TECHCRUNCH_PAGE = {
    "title_selectors": ["h1.article__title", "h1"],
    "description_selectors": [_META_DESCRIPTION],
    "body_container_selectors": [".article-content", ".article__content", "article"],
    "body_fallback_selectors": ["main p", ".content p"],
    "breadcrumb_selectors": [".breadcrumb a", "nav[aria-label='Breadcrumb'] a"],
    "use_json_ld": True,
}

_YAHOO_EXCLUDED_TITLES = [
    "today's news",
    "newsletters",
    "weather news",
    "sign up",
    "more in",
    "follow us",
    "subscribe",
    "newsletter",
    "live updates",
    "watch now",
    "trending",
]


def _ap_section(name: str, path: str, category: str) -> Dict[str, Any]:
    return {
        "name": f"AP News {name}",
        "network": "apnews",
        "listing_url": f"https://apnews.com/{path}",
        "link_selectors": ['.PagePromo a.Link[href*="/article/"]', '.PagePromo-title a[href*="/article/"]'],
        "url_must_contain": "apnews.com/article/",
        "exclude_title_terms": [],
        "category": category,
        **AP_NEWS_PAGE,
    }


def _yahoo_section(name: str, path: str, category: str) -> Dict[str, Any]:
    return {
        "name": f"Yahoo {name}",
        "network": "yahoo",
        "listing_url": f"https://www.yahoo.com/{path}",
        "link_selectors": [
            'article a[href*="/news/articles/"]',
            '[data-module="Article"] a[href*="/news/articles/"]',
            '.caas-list-item a[href*="/news/articles/"]',
            'a[href*="/news/articles/"]',
        ],
        "url_must_contain": "yahoo.com/news/articles/",
        "exclude_title_terms": list(_YAHOO_EXCLUDED_TITLES),
        "category": category,
        **YAHOO_PAGE,
    }


def _cbs_section(name: str, path: str, category: str) -> Dict[str, Any]:
    return {
        "name": f"CBS News {name}",
        "network": "cbs",
        "listing_url": f"https://www.cbsnews.com/{path}/",
        "link_selectors": ["a.item__anchor"],
        "url_must_contain": "cbsnews.com/news/",
        "exclude_title_terms": [],
        "category": category,
        **CBS_PAGE,
    }


def _abc_section(name: str, path: str, category: str) -> Dict[str, Any]:
    return {
        "name": f"ABC News {name}",
        "network": "abcnews",
        "listing_url": f"https://abcnews.go.com/{path}",
        "link_selectors": [f'a[href*="/{path}/story"]', f'a[href*="/{path}/wireStory"]'],
        "url_must_contain": "abcnews.go.com/",
        "exclude_title_terms": [],
        "category": category,
        **ABC_PAGE,
    }


# Catalogue
# =========

AP_NEWS_SOURCES = {
    "apNewsUS": _ap_section("US", "us-news", "U.S. News"),
    "apNewsWorld": _ap_section("World", "world-news", "World News"),
    "apNewsPolitics": _ap_section("Politics", "politics", "Politics"),
    "apNewsBusiness": _ap_section("Business", "business", "Business"),
    "apNewsScience": _ap_section("Science", "science", "Science"),
    "apNewsTechnology": _ap_section("Technology", "technology", "Technology"),
    "apNewsLifestyle": _ap_section("Lifestyle", "lifestyle", "Lifestyle"),
    "apNewsEntertainment": _ap_section("Entertainment", "entertainment", "Entertainment"),
}

YAHOO_SOURCES = {
    "yahooUSNews": _yahoo_section("US News", "news/us/", "U.S. News"),
    "yahooWorldNews": _yahoo_section("World News", "news/world/", "World News"),
    "yahooPoliticsNews": _yahoo_section("Politics", "news/politics/", "Politics"),
    "yahooEntertainmentNews": _yahoo_section("Entertainment", "entertainment/", "Entertainment"),
    "yahooLifestyleNews": _yahoo_section("Lifestyle", "lifestyle/", "Lifestyle"),
    "yahooScienceNews": _yahoo_section("Science", "news/science/", "Science"),
}

CBS_SOURCES = {
    "cbsUS": _cbs_section("US", "us", "U.S. News"),
    "cbsWorld": _cbs_section("World", "world", "World News"),
    "cbsPolitics": _cbs_section("Politics", "politics", "Politics"),
}

ABC_NEWS_SOURCES = {
    "abcNewsUS": _abc_section("US", "US", "U.S. News"),
    "abcNewsInternational": _abc_section("International", "International", "World News"),
    "abcNewsBusiness": _abc_section("Business", "Business", "Business"),
    "abcNewsTechnology": _abc_section("Technology", "Technology", "Technology"),
}

TECH_SOURCES = {
    "techCrunch": {
        "name": "TechCrunch",
        "network": "techcrunch",
        "listing_url": "https://techcrunch.com/",
        "link_selectors": ["a.loop-card__title-link", ".loop-card__title a"],
        "url_must_contain": "techcrunch.com/20",
        "exclude_title_terms": [],
        "category": "Technology",
        **TECHCRUNCH_PAGE,
    },
}

ALL_SOURCES: Dict[str, Dict[str, Any]] = {
    **AP_NEWS_SOURCES,
    **YAHOO_SOURCES,
    **CBS_SOURCES,
    **ABC_NEWS_SOURCES,
    **TECH_SOURCES,
}


def get_source(source_id: str) -> Dict[str, Any] | None:
    """Return the catalogue entry for ``source_id`` or ``None``."""

    return ALL_SOURCES.get(source_id)


def get_sources_by_network(network: str) -> Dict[str, Dict[str, Any]]:
    return {
        source_id: source_config
        for source_id, source_config in ALL_SOURCES.items()
        if source_config["network"] == network
    }


def validate_sources() -> None:
    """Check that every catalogue entry is complete and well formed."""

    required_fields = [
        "name",
        "network",
        "listing_url",
        "link_selectors",
        "url_must_contain",
        "title_selectors",
        "body_container_selectors",
    ]

    for source_id, source_config in ALL_SOURCES.items():
        for field in required_fields:
            if field not in source_config:
                raise ValueError(f"Source {source_id} is missing field {field}")

        url = source_config["listing_url"]
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"Listing URL for {source_id} is not valid: {url}")

        if not source_config["link_selectors"]:
            raise ValueError(f"Source {source_id} needs at least one link selector")
