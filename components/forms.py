"""Form building blocks. Every POST form carries the session CSRF token."""

from fasthtml.common import *
from fasthtml.common import Select as HtmlSelect
from monsterui.all import *

from auth.session import csrf_token
from constants import FORM_CARD

from .errors import FormErrors


def CsrfInput(sess) -> Input:
    return Input(type="hidden", name="csrf_token", value=csrf_token(sess))


def _value(values, name):
    value = (values or {}).get(name)
    return "" if value is None else str(value)


def TextField(label: str, name: str, values=None, type: str = "text", required: bool = False, **kwargs) -> Div:
    return LabelInput(
        label,
        id=name,
        name=name,
        type=type,
        value="" if type == "password" else _value(values, name),
        required=required,
        **kwargs,
    )


def TextAreaField(label: str, name: str, values=None, rows: int = 4) -> Div:
    return Div(
        FormLabel(label, fr=name),
        TextArea(_value(values, name), id=name, name=name, rows=rows, cls="uk-textarea"),
        cls="space-y-2",
    )


def SelectField(
    label: str,
    name: str,
    options,
    values=None,
    placeholder: str = "Select…",
    required: bool = False,
    **kwargs,
) -> Div:
    """Native select. options: iterable of (value, text)."""
    selected = _value(values, name)
    return Div(
        FormLabel(label, fr=name),
        HtmlSelect(
            Option(placeholder, value=""),
            *[
                Option(text, value=str(value), selected=str(value) == selected)
                for value, text in options
            ],
            id=name,
            name=name,
            required=required,
            cls="uk-select",
            **kwargs,
        ),
        cls="space-y-2",
    )


def CheckboxField(label: str, name: str, values=None) -> Div:
    checked = str((values or {}).get(name)).lower() in ("true", "on", "1")
    return Div(
        Label(CheckboxX(id=name, name=name, checked=checked), Span(label, cls="ml-2")),
        cls="flex items-center",
    )


def FormCard(title: str, *fields, action: str, sess, submit_label: str = "Save", errors=None, cancel_href: str = None, subtitle: str = "") -> Card:
    """A card wrapping a POST form with errors, CSRF token and submit button."""
    buttons = [Button(submit_label, type="submit", cls=ButtonT.primary)]
    if cancel_href:
        buttons.append(A("Cancel", href=cancel_href, cls=f"{ButtonT.ghost} ml-2"))
    return Card(
        H2(title, cls="text-2xl font-bold mb-2"),
        P(subtitle, cls="text-gray-600 mb-4") if subtitle else None,
        FormErrors(errors),
        Form(
            CsrfInput(sess),
            *fields,
            Div(*buttons, cls="flex items-center pt-2"),
            method="post",
            action=action,
            cls="space-y-4",
        ),
        cls=FORM_CARD,
    )


def PostButton(label: str, action: str, sess, cls=ButtonT.secondary, confirm: str = None) -> Form:
    """A one-button form, e.g. delete or restore."""
    button_kwargs = {"onclick": f"return confirm('{confirm}')"} if confirm else {}
    return Form(
        CsrfInput(sess),
        Button(label, type="submit", cls=cls, **button_kwargs),
        method="post",
        action=action,
        cls="inline-block",
    )


def DeleteButton(action: str, sess, label: str = "Delete") -> Form:
    return PostButton(label, action, sess, cls=ButtonT.destructive, confirm="Are you sure?")
