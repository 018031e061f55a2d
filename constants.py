"""
Application constants for The Virtual Armory.
Centralized table names, business limits, and styling for UI components.
"""

from datetime import timedelta

# =============================================================================
# TABLE NAMES
# =============================================================================
USERS_TABLE = "users"
GUNS_TABLE = "guns"
AMMO_TABLE = "ammo"
PAYMENTS_TABLE = "payments"
PROMOTIONS_TABLE = "promotions"

MANUFACTURERS_TABLE = "manufacturers"
CALIBERS_TABLE = "calibers"
WEAPON_TYPES_TABLE = "weapon_types"
BRANDS_TABLE = "brands"
BULLET_STYLES_TABLE = "bullet_styles"
GRAINS_TABLE = "grains"
CASINGS_TABLE = "casings"

# =============================================================================
# AUTH
# =============================================================================
MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)
TOKEN_LIFETIME = timedelta(hours=1)
TOKEN_BYTES = 32

ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Session keys written on login and removed on logout
AUTH_SESSION_KEYS = ("auth", "user_id", "user_email", "is_admin")

# =============================================================================
# SUBSCRIPTIONS
# =============================================================================
TIER_FREE = "free"
TIER_MONTHLY = "monthly"
TIER_YEARLY = "yearly"
TIER_LIFETIME = "lifetime"
TIER_PREMIUM_LIFETIME = "premium_lifetime"
TIER_PROMOTION = "promotion"

LIFETIME_TIERS = (TIER_LIFETIME, TIER_PREMIUM_LIFETIME)
RECURRING_TIERS = (TIER_MONTHLY, TIER_YEARLY)
PAID_TIERS = RECURRING_TIERS + LIFETIME_TIERS

STATUS_ACTIVE = "active"
STATUS_CANCELED = "canceled"
STATUS_PENDING_CANCELLATION = "pending_cancellation"
STATUS_EXPIRED = "expired"

# Price in cents for each purchasable tier
TIER_PRICES = {
    TIER_MONTHLY: 500,
    TIER_YEARLY: 3000,
    TIER_LIFETIME: 10000,
    TIER_PREMIUM_LIFETIME: 100000,
}

TIER_INTERVALS = {
    TIER_MONTHLY: "month",
    TIER_YEARLY: "year",
}

# Pricing page cards, in display order
PRICING_PLANS = [
    {
        "tier": TIER_MONTHLY,
        "title": "Liked It",
        "period": "per month",
        "features": ["Unlimited guns", "Unlimited ammunition", "Cancel anytime"],
    },
    {
        "tier": TIER_YEARLY,
        "title": "Loved It",
        "period": "per year",
        "features": ["Everything in monthly", "Two months free"],
    },
    {
        "tier": TIER_LIFETIME,
        "title": "Lifetime",
        "period": "one time",
        "features": ["Everything, forever", "No renewals"],
    },
    {
        "tier": TIER_PREMIUM_LIFETIME,
        "title": "Premium Lifetime",
        "period": "one time",
        "features": ["Everything, forever", "Founding supporter badge"],
    },
]

# =============================================================================
# FREE TIER LIMITS
# =============================================================================
FREE_TIER_GUN_LIMIT = 2
FREE_TIER_AMMO_LIMIT = 4

# =============================================================================
# LISTING
# =============================================================================
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100
GUN_SORT_FIELDS = (
    "name",
    "created_at",
    "acquired",
    "manufacturer",
    "caliber",
    "weapon_type",
)
USER_SORT_FIELDS = ("email", "created_at", "last_login", "subscription_tier")
DEFAULT_SORT_BY = "created_at"
DEFAULT_SORT_ORDER = "desc"
MAX_NAME_LENGTH = 100

# =============================================================================
# STRIPE IP FILTER
# =============================================================================
STRIPE_IP_SOURCES = {
    "webhooks": ("https://stripe.com/files/ips/ips_webhooks.json", "WEBHOOKS"),
    "api": ("https://stripe.com/files/ips/ips_api.json", "API"),
    "armada_gator": (
        "https://stripe.com/files/ips/ips_armada_gator.json",
        "ARMADA_GATOR",
    ),
}
STRIPE_IP_REFRESH_INTERVAL = timedelta(hours=24)
STRIPE_IP_FETCH_TIMEOUT = 10

# =============================================================================
# EMAIL
# =============================================================================
MAILJET_SEND_URL = "https://api.mailjet.com/v3.1/send"

# =============================================================================
# CSS CLASS CONSTANTS
# =============================================================================
FLEX_COL = "flex flex-col"
FLEX_CENTER = "flex items-center"
FLEX_BETWEEN = "flex justify-between items-center"

SECTION_BASE = "pt-8 px-4 pb-16 gap-8 lg:pt-12 lg:px-12"

CARD_BASE = (
    "max-w-2xl mx-auto my-8 p-8 shadow-lg rounded-xl bg-white text-gray-900 "
    "hover:shadow-xl transition-shadow duration-300"
)
HEADER_CARD = (
    "bg-gradient-to-r from-stone-700 via-stone-800 to-stone-900 text-white "
    "py-8 px-6 text-center rounded-xl"
)
FORM_CARD = "max-w-lg mx-auto my-12 p-8 shadow-md rounded-xl bg-white"
TABLE_CLS = "w-full text-sm text-left"
STAT_CARD = "p-6 rounded-xl bg-white border border-gray-200 shadow-sm"

# Public pages listed in sitemap.xml
SITEMAP_PATHS = ("/", "/about", "/contact", "/pricing", "/login", "/register")
