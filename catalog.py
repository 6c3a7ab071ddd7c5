"""
Static game data: market categories, product types and market events.

Every lookup is keyed by a closed Enum, so an unknown product type can only
appear at the boundary where a string is turned into a ProductTypeKey.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Tuple


# ==================== Enums ====================

class MarketCategory(Enum):
    SEARCH_SERVICES = "Search Services"
    MEDIA_PLATFORMS = "Media Platforms"
    SOCIAL_NETWORKS = "Social Networks"
    OPERATING_SYSTEMS = "Operating Systems"
    DEVICES = "Devices"
    INFRASTRUCTURE = "Infrastructure"
    COMMERCE = "Commerce and Services"
    SOFTWARE = "Software"
    AI_ML = "AI and Machine Learning"


class Competitiveness(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class ProductTypeKey(Enum):
    SEARCH_ENGINE = "SEARCH_ENGINE"
    MAPS = "MAPS"
    NEWS_SERVICE = "NEWS_SERVICE"
    VIDEO_PLATFORM = "VIDEO_PLATFORM"
    MUSIC_SERVICE = "MUSIC_SERVICE"
    STREAMING_SERVICE = "STREAMING_SERVICE"
    SOCIAL_NETWORK = "SOCIAL_NETWORK"
    PROFESSIONAL_NETWORK = "PROFESSIONAL_NETWORK"
    MESSAGING_PLATFORM = "MESSAGING_PLATFORM"
    DATING_APP = "DATING_APP"
    MOBILE_OS = "MOBILE_OS"
    DESKTOP_OS = "DESKTOP_OS"
    SMARTPHONE = "SMARTPHONE"
    TABLET = "TABLET"
    CLOUD_HOSTING = "CLOUD_HOSTING"
    CONTENT_DELIVERY = "CONTENT_DELIVERY"
    ONLINE_MARKETPLACE = "ONLINE_MARKETPLACE"
    PAYMENT_SERVICE = "PAYMENT_SERVICE"
    OFFICE_SUITE = "OFFICE_SUITE"
    WEB_BROWSER = "WEB_BROWSER"
    VIRTUAL_ASSISTANT = "VIRTUAL_ASSISTANT"
    MACHINE_TRANSLATION = "MACHINE_TRANSLATION"


class EffectKind(Enum):
    GROWTH_MULTIPLIER = "growth_multiplier"  # every category
    CATEGORY_GROWTH = "category_growth"  # listed categories only


RESOURCE_AREAS = ("backend", "frontend", "infrastructure", "ai", "database")


# ==================== Product types ====================

@dataclass(frozen=True)
class ProductTypeSpec:
    key: ProductTypeKey
    name: str
    category: MarketCategory
    max_market_size: int
    ideal_distribution: Tuple[int, int, int, int, int]  # ordered as RESOURCE_AREAS
    competitiveness: Competitiveness
    description: str = ""

    def ideal(self):
        return dict(zip(RESOURCE_AREAS, self.ideal_distribution))


def _spec(key, name, category, max_market_size, ideal, competitiveness, description):
    return ProductTypeSpec(key, name, category, max_market_size, ideal, competitiveness, description)


_C = MarketCategory
_K = ProductTypeKey
_L = Competitiveness

PRODUCT_TYPES: Dict[ProductTypeKey, ProductTypeSpec] = {
    spec.key: spec for spec in (
        # Search Services
        _spec(_K.SEARCH_ENGINE, "Search Engine", _C.SEARCH_SERVICES, 4_000_000_000,
              (35, 20, 25, 15, 5), _L.HIGH,
              "A web search engine with indexing and ranking algorithms."),
        _spec(_K.MAPS, "Maps", _C.SEARCH_SERVICES, 3_000_000_000,
              (30, 25, 20, 10, 15), _L.MEDIUM,
              "A mapping and navigation service with geographic data."),
        _spec(_K.NEWS_SERVICE, "News Service", _C.SEARCH_SERVICES, 2_500_000_000,
              (25, 30, 15, 15, 15), _L.MEDIUM,
              "An aggregator of news from various sources with personalization."),
        # Media Platforms
        _spec(_K.VIDEO_PLATFORM, "Video Platform", _C.MEDIA_PLATFORMS, 2_000_000_000,
              (30, 25, 30, 5, 10), _L.HIGH,
              "User-uploaded video hosting and playback."),
        _spec(_K.MUSIC_SERVICE, "Music Service", _C.MEDIA_PLATFORMS, 1_500_000_000,
              (25, 30, 20, 15, 10), _L.MEDIUM,
              "Music streaming with playlists and recommendations."),
        _spec(_K.STREAMING_SERVICE, "Streaming Service", _C.MEDIA_PLATFORMS, 1_000_000_000,
              (25, 25, 35, 5, 10), _L.HIGH,
              "Subscription film and series streaming."),
        # Social Networks
        _spec(_K.SOCIAL_NETWORK, "Social Network", _C.SOCIAL_NETWORKS, 3_500_000_000,
              (30, 30, 15, 10, 15), _L.VERY_HIGH,
              "A general purpose social network."),
        _spec(_K.PROFESSIONAL_NETWORK, "Professional Network", _C.SOCIAL_NETWORKS, 1_000_000_000,
              (25, 30, 15, 15, 15), _L.MEDIUM,
              "Career profiles, recruiting and business contacts."),
        _spec(_K.MESSAGING_PLATFORM, "Messaging Platform", _C.SOCIAL_NETWORKS, 3_000_000_000,
              (35, 25, 25, 5, 10), _L.HIGH,
              "Instant messaging and group chat."),
        _spec(_K.DATING_APP, "Dating App", _C.SOCIAL_NETWORKS, 500_000_000,
              (25, 30, 10, 25, 10), _L.MEDIUM,
              "Matchmaking with profile recommendations."),
        # Operating Systems
        _spec(_K.MOBILE_OS, "Mobile OS", _C.OPERATING_SYSTEMS, 2_500_000_000,
              (30, 20, 20, 10, 20), _L.VERY_HIGH,
              "An operating system for phones and tablets."),
        _spec(_K.DESKTOP_OS, "Desktop OS", _C.OPERATING_SYSTEMS, 1_500_000_000,
              (35, 20, 15, 10, 20), _L.HIGH,
              "An operating system for desktop and laptop computers."),
        # Devices
        _spec(_K.SMARTPHONE, "Smartphone", _C.DEVICES, 1_500_000_000,
              (25, 30, 20, 15, 10), _L.VERY_HIGH,
              "A touchscreen phone with an app ecosystem."),
        _spec(_K.TABLET, "Tablet", _C.DEVICES, 600_000_000,
              (25, 35, 20, 10, 10), _L.MEDIUM,
              "A large-screen touch device for media and light work."),
        # Infrastructure
        _spec(_K.CLOUD_HOSTING, "Cloud Hosting", _C.INFRASTRUCTURE, 300_000_000,
              (30, 10, 40, 5, 15), _L.HIGH,
              "On-demand compute and storage for businesses."),
        _spec(_K.CONTENT_DELIVERY, "Content Delivery Network", _C.INFRASTRUCTURE, 200_000_000,
              (25, 5, 50, 5, 15), _L.MEDIUM,
              "Edge caching that speeds up websites and media."),
        # Commerce and Services
        _spec(_K.ONLINE_MARKETPLACE, "Online Marketplace", _C.COMMERCE, 2_000_000_000,
              (30, 25, 20, 10, 15), _L.HIGH,
              "A platform connecting buyers and sellers."),
        _spec(_K.PAYMENT_SERVICE, "Payment Service", _C.COMMERCE, 1_500_000_000,
              (35, 15, 25, 5, 20), _L.HIGH,
              "Online payments and money transfers."),
        # Software
        _spec(_K.OFFICE_SUITE, "Office Suite", _C.SOFTWARE, 1_200_000_000,
              (30, 35, 10, 10, 15), _L.HIGH,
              "Documents, spreadsheets and presentations."),
        _spec(_K.WEB_BROWSER, "Web Browser", _C.SOFTWARE, 3_500_000_000,
              (35, 30, 15, 10, 10), _L.VERY_HIGH,
              "A browser for the world wide web."),
        # AI and Machine Learning
        _spec(_K.VIRTUAL_ASSISTANT, "Virtual Assistant", _C.AI_ML, 1_000_000_000,
              (20, 15, 15, 40, 10), _L.MEDIUM,
              "A voice and text assistant that answers questions."),
        _spec(_K.MACHINE_TRANSLATION, "Machine Translation", _C.AI_ML, 800_000_000,
              (20, 15, 15, 40, 10), _L.LOW,
              "Automatic translation between languages."),
    )
}


def product_type(key):
    """Catalog entry for a ProductTypeKey (or its string value)"""
    if not isinstance(key, ProductTypeKey):
        key = ProductTypeKey(key)
    return PRODUCT_TYPES[key]


def types_in_category(category):
    return [spec for spec in PRODUCT_TYPES.values() if spec.category == category]


# ==================== Market events ====================

@dataclass(frozen=True)
class EventTemplate:
    title: str
    description: str
    duration: int  # months
    kind: EffectKind
    multiplier: float
    categories: Tuple[MarketCategory, ...] = tuple(MarketCategory)


EVENT_CATALOG: Tuple[EventTemplate, ...] = (
    EventTemplate("Tech Bubble Concerns",
                  "Investors become cautious about tech valuations, slowing growth.",
                  6, EffectKind.GROWTH_MULTIPLIER, 0.9),
    EventTemplate("Mobile Revolution",
                  "Rapid adoption of smartphones changes the tech landscape.",
                  36, EffectKind.CATEGORY_GROWTH, 1.3,
                  (_C.DEVICES, _C.OPERATING_SYSTEMS, _C.SOCIAL_NETWORKS)),
    EventTemplate("Privacy Concerns",
                  "Public backlash against data collection practices affects social platforms.",
                  12, EffectKind.CATEGORY_GROWTH, 0.85, (_C.SOCIAL_NETWORKS,)),
    EventTemplate("Cloud Computing Boom",
                  "Businesses rapidly migrate to cloud services, boosting infrastructure demand.",
                  24, EffectKind.CATEGORY_GROWTH, 1.4, (_C.INFRASTRUCTURE,)),
    EventTemplate("Economic Recession",
                  "Economic downturn leads to reduced tech spending and investment.",
                  18, EffectKind.GROWTH_MULTIPLIER, 0.8),
    EventTemplate("AI Breakthrough",
                  "Major advances in artificial intelligence create new market opportunities.",
                  30, EffectKind.CATEGORY_GROWTH, 1.6, (_C.AI_ML,)),
    EventTemplate("E-commerce Expansion",
                  "Rapid growth in online shopping creates opportunities in digital commerce.",
                  24, EffectKind.CATEGORY_GROWTH, 1.3, (_C.COMMERCE,)),
)

# Seeded at market initialization
SCRIPTED_EVENTS: Tuple[Tuple[date, EventTemplate], ...] = (
    (date(2004, 6, 1),
     EventTemplate("Tech Boom",
                   "Increasing investment in tech startups boosts growth across all sectors.",
                   12, EffectKind.GROWTH_MULTIPLIER, 1.2)),
    (date(2005, 3, 1),
     EventTemplate("Social Media Revolution",
                   "A surge in social media adoption changes online behavior patterns.",
                   24, EffectKind.CATEGORY_GROWTH, 1.5, (_C.SOCIAL_NETWORKS,))),
)


# ==================== Competitor names ====================

NAME_PREFIXES = ("Tech", "Digital", "Cyber", "Cloud", "Net", "Byte", "Data", "Quantum", "Nexus",
                 "Silicon", "Future", "Smart", "Meta", "Micro", "Macro", "Virtual", "Web", "AI",
                 "Logic", "Inno")
NAME_SUFFIXES = ("Systems", "Solutions", "Technologies", "Labs", "Innovations", "Works", "Dynamics",
                 "Connect", "Network", "Group", "Corp", "Inc", "Tech", "Soft", "Wave", "Base", "Hub",
                 "Mind", "Vision", "Link")
