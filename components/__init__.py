# components/__init__.py
# Re-exports for clean imports

from components.base import (
    DivCentered,
    FlashMessages,
    PageHeader,
    PageLayout,
)
from components.cards import (
    DetailList,
    GrowthBadge,
    PricingCard,
    PromotionBanner,
    StatCard,
)
from components.errors import ERROR_PAGES, ErrorAlert, FormErrors
from components.forms import (
    CheckboxField,
    CsrfInput,
    DeleteButton,
    FormCard,
    PostButton,
    SelectField,
    TextAreaField,
    TextField,
)
from components.sections import features_section, footer, hero_section, section_header
from components.tables import (
    DataTable,
    Pagination,
    SearchForm,
    SortHeader,
    badge_cell,
    link_cell,
    number_cell,
)

from .navigation import NavComponent

__all__ = [
    # Layout
    "DivCentered",
    "FlashMessages",
    "PageHeader",
    "PageLayout",
    "NavComponent",
    "footer",
    "hero_section",
    "features_section",
    "section_header",
    # Cards
    "DetailList",
    "GrowthBadge",
    "PricingCard",
    "PromotionBanner",
    "StatCard",
    # Errors
    "ERROR_PAGES",
    "ErrorAlert",
    "FormErrors",
    # Forms
    "CheckboxField",
    "CsrfInput",
    "DeleteButton",
    "FormCard",
    "PostButton",
    "SelectField",
    "TextAreaField",
    "TextField",
    # Tables
    "DataTable",
    "Pagination",
    "SearchForm",
    "SortHeader",
    "badge_cell",
    "link_cell",
    "number_cell",
]
