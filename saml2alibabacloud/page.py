"""HTML scraping helpers shared by the form based providers."""

from urllib.parse import urljoin

from bs4 import BeautifulSoup

SAML_RESPONSE_FIELD = "SAMLResponse"


def parse_html(html):
    return BeautifulSoup(html, "lxml")


class Form:
    """A scraped HTML form: absolute action URL, method and field values."""

    def __init__(self, action, method="post", fields=None):
        self.action = action
        self.method = method
        self.fields = dict(fields or {})

    def __repr__(self):
        return f"Form(action={self.action!r}, fields={sorted(self.fields)!r})"

    @classmethod
    def from_tag(cls, tag, base_url):
        """Build a Form from a ``<form>`` tag found in the page at *base_url*.

        Every named input keeps its value verbatim; submit buttons and
        unchecked checkboxes are left out, as a browser would.
        """
        fields = {}
        for field in tag.find_all(["input", "select", "textarea"]):
            name = field.get("name")
            if not name:
                continue
            field_type = (field.get("type") or "").lower()
            if field_type in ("submit", "button", "image", "reset"):
                continue
            if field_type in ("checkbox", "radio") and not field.has_attr("checked"):
                continue
            if field.name == "select":
                option = field.find("option", selected=True) or field.find("option")
                fields[name] = option.get("value", option.text) if option else ""
            elif field.name == "textarea":
                fields[name] = field.text
            else:
                fields[name] = field.get("value", "")

        action = urljoin(base_url, tag.get("action") or base_url)
        return cls(action, (tag.get("method") or "post").lower(), fields)


def find_form(soup, base_url, selector=None):
    """Return the form matching *selector*, or the first form with a password input."""
    if selector:
        tag = soup.select_one(selector)
        if tag is not None and tag.name != "form":
            tag = tag.find_parent("form")
    else:
        password = soup.find("input", {"type": "password"})
        tag = password.find_parent("form") if password else None
    if tag is None:
        return None
    return Form.from_tag(tag, base_url)


def find_form_with_field(soup, base_url, field_name):
    """Return the form holding an input named *field_name*, or None."""
    field = soup.find(["input", "select"], {"name": field_name})
    if field is None:
        return None
    tag = field.find_parent("form")
    if tag is None:
        return None
    return Form.from_tag(tag, base_url)


def extract_saml_form(html):
    """Return (saml_assertion, action_url) from an HTML form, or (None, None)."""
    soup = parse_html(html)
    tag = soup.find("input", {"name": SAML_RESPONSE_FIELD})
    if not tag or not tag.get("value"):
        return None, None
    form = tag.find_parent("form")
    action_url = form["action"] if form and form.get("action") else None
    return tag["value"], action_url


def extract_saml_response(html):
    """Return the SAMLResponse value from an HTML form, or None."""
    value, _ = extract_saml_form(html)
    return value
