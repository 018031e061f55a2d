"""
Public controllers: home, about, contact, pricing, health, robots and
sitemap, plus the caliber search used by the gun form.
"""

import logging
import xml.etree.ElementTree as ET

from fasthtml.common import *
from starlette.responses import JSONResponse, PlainTextResponse, Response

import db
from constants import PAID_TIERS, SITEMAP_PATHS, TIER_FREE
from controllers.helpers import redirect, render
from services import email_service
from services import reference_data as refs
from services.config import get_app_config
from services.errors import EmailError
from services.promotions import home_page_promotions
from services.users import can_subscribe_to_tier, expire_subscription_if_ended
from utils.dates import utcnow
from validators import AccountValidator, ContactForm
from views.home import about_page, contact_form, home_page, pricing_page
from views.owner import caliber_options

logger = logging.getLogger(__name__)


def home_controller(sess, user=None):
    return render(
        "Track your collection",
        home_page(home_page_promotions(), logged_in=user is not None),
        sess=sess,
        user=user,
        wide=True,
    )


def about_controller(sess, user=None):
    return render("About", about_page(), sess=sess, user=user)


# =============================================================================
# Contact
# =============================================================================


def contact_page(sess, user=None):
    values = {"email": user["email"]} if user else None
    return render("Contact", contact_form(sess, values), sess=sess, user=user)


def contact_controller(form: ContactForm, sess, user=None):
    errors = AccountValidator.validate_contact(form)
    if errors:
        return render("Contact", contact_form(sess, form.__dict__, errors), sess=sess, user=user, status_code=400)
    try:
        email_service.send_contact_email(form.name, form.email, form.subject, form.message)
    except EmailError as e:
        logger.error(f"❌ Contact form email failed: {e}")
        return render(
            "Contact",
            contact_form(sess, form.__dict__, ["We couldn't send your message right now. Please try again later."]),
            sess=sess,
            user=user,
            status_code=500,
        )
    return redirect("/contact", sess, "Your message has been sent. We'll be in touch soon.")


# =============================================================================
# Pricing
# =============================================================================


def pricing_controller(sess, user=None):
    if user is not None:
        user = expire_subscription_if_ended(user)
    current = (user or {}).get("subscription_tier") or TIER_FREE
    purchasable = {t for t in PAID_TIERS if user is not None and can_subscribe_to_tier(current, t)}
    return render("Pricing", pricing_page(sess, current if user else "", purchasable), sess=sess, user=user, wide=True)


# =============================================================================
# Machine-readable endpoints
# =============================================================================


def health_controller():
    database = "up" if db.ping() else "down"
    return JSONResponse({"status": "ok", "database": database})


def robots_controller():
    base_url = get_app_config().app_base_url
    lines = [
        "User-agent: *",
        "Disallow: /admin",
        "Disallow: /owner",
        "Allow: /",
        f"Sitemap: {base_url}/sitemap.xml",
    ]
    return PlainTextResponse("\n".join(lines) + "\n")


def sitemap_controller():
    """sitemap.xml for the public pages, stamped with today's date."""
    base_url = get_app_config().app_base_url
    lastmod = utcnow().strftime("%Y-%m-%d")
    urlset = ET.Element("urlset", xmlns="http://www.sitemaps.org/schemas/sitemap/0.9")
    for path in SITEMAP_PATHS:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = f"{base_url}{path}"
        ET.SubElement(url, "lastmod").text = lastmod
        ET.SubElement(url, "changefreq").text = "weekly"
        ET.SubElement(url, "priority").text = "1.0" if path == "/" else "0.8"
    body = ET.tostring(urlset, encoding="utf-8", xml_declaration=True)
    return Response(body, media_type="application/xml")


def caliber_search_controller(q: str = ""):
    return caliber_options(refs.search_calibers((q or "").strip()))
