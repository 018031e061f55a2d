"""
Error pages and inline alerts.
"""

from typing import Optional

from fasthtml.common import *
from monsterui.all import *

ERROR_PAGES = {
    400: ("Bad Request", "The request could not be processed."),
    401: ("Unauthorized", "You must log in to access that resource."),
    403: ("Forbidden", "You do not have permission to access that resource."),
    404: ("Page Not Found", "The page you are looking for does not exist."),
    500: ("Something Went Wrong", "An unexpected error occurred. Please try again later."),
}

ALERT_STYLES = {
    "error": ("bg-red-50 border-red-200", "text-red-900", "⚠️"),
    "warning": ("bg-yellow-50 border-yellow-200", "text-yellow-900", "⚠️"),
    "info": ("bg-blue-50 border-blue-200", "text-blue-900", "ℹ️"),
    "success": ("bg-green-50 border-green-200", "text-green-900", "✓"),
}


def ErrorAlert(
    title: str,
    message: str,
    type: str = "error",
    status_code: Optional[int] = None,
    back_href: Optional[str] = "/",
    back_label: str = "← Back to Home",
) -> Div:
    """
    Boxed alert used for full error pages (404, 403, failed tokens...).

    Args:
        title: Heading, e.g. "Gun not found"
        message: Explanation under the heading
        type: "error", "warning", "info" or "success"
        status_code: Shown above the title when given
        back_href: Target of the back button; None hides it

    Example:
        >>> ErrorAlert("Page Not Found", "No such gun", status_code=404)
    """
    box, text, icon = ALERT_STYLES.get(type, ALERT_STYLES["error"])

    heading = [Span(icon, cls="text-3xl mb-3")]
    if status_code:
        heading.append(P(str(status_code), cls=f"text-5xl font-black {text} opacity-60"))
    heading.append(H2(title, cls=f"text-2xl font-bold mb-2 {text}"))

    content = [
        Div(*heading, cls="flex flex-col items-center"),
        P(message, cls=f"text-sm mb-4 {text}"),
    ]
    if back_href:
        content.append(Div(A(Button(back_label, cls=ButtonT.secondary), href=back_href, cls="no-underline"), cls="mt-4"))

    return Div(*content, cls=f"max-w-xl mx-auto mt-16 text-center p-8 rounded-lg border {box}")


def FormErrors(errors) -> Div:
    """List of validation messages above a form; renders nothing when empty."""
    if not errors:
        return Div(id="form-errors")
    return Div(
        Ul(*[Li(e, cls="text-red-600 list-disc ml-4") for e in errors]),
        id="form-errors",
        cls="bg-red-50 p-4 border border-red-300 rounded mb-6",
    )
