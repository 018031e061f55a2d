from fasthtml.common import *
from monsterui.all import *

from auth.session import pop_flashes
from constants import FLEX_CENTER, FLEX_COL, HEADER_CARD, SECTION_BASE

from .navigation import NavComponent
from .sections import footer


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================
def DivCentered(*args, **kwargs) -> Div:
    """A Div with flexbox for centering content."""
    return Div(*args, **kwargs, cls=f"{FLEX_COL} {FLEX_CENTER}")


# =============================================================================
# FLASH MESSAGES
# =============================================================================
_FLASH_STYLES = {
    "success": AlertT.success,
    "error": AlertT.error,
    "warning": AlertT.warning,
    "info": AlertT.info,
}


def FlashMessages(flashes) -> Div:
    """Render queued flash messages as MonsterUI alerts."""
    return Div(
        *[
            Alert(P(message), cls=_FLASH_STYLES.get(kind, AlertT.info))
            for kind, message in flashes
        ],
        id="flash-messages",
        cls="space-y-2 mb-6",
    )


def PageHeader(title: str, subtitle: str = "", *actions) -> Div:
    return Div(
        Div(
            H1(title, cls="text-3xl font-bold"),
            P(subtitle, cls="text-stone-200 mt-2") if subtitle else None,
        ),
        Div(*actions, cls="flex gap-2 justify-center mt-4") if actions else None,
        cls=f"{HEADER_CARD} mb-8",
    )


# =============================================================================
# PAGE LAYOUT
# =============================================================================
def PageLayout(title: str, *content, sess=None, user=None, wide: bool = False):
    """
    Full page: navbar, pending flash messages, content and footer.

    Flash messages are popped from the session here, so each one shows once.
    """
    return (
        Title(f"{title} | The Virtual Armory"),
        Div(
            NavComponent(sess=sess, user=user),
            Container(
                FlashMessages(pop_flashes(sess)),
                *content,
                cls=(ContainerT.xl if wide else ContainerT.lg, SECTION_BASE),
            ),
            footer(),
            cls="min-h-screen bg-stone-50",
        ),
    )
