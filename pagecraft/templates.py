"""Landing page style templates offered to the user."""

from enum import Enum

from pagecraft.errors import ConfigurationError


class TemplateKey(str, Enum):
    BASIC = "basic"
    MODERN = "modern"
    SAAS = "saas"


DEFAULT_TEMPLATE = TemplateKey.BASIC

LANDING_PAGE_TEMPLATES = {
    TemplateKey.BASIC: "Basic landing page with header, hero section, features, and footer",
    TemplateKey.MODERN: "Modern landing page with gradient backgrounds, animated buttons, and card components",
    TemplateKey.SAAS: "SaaS product page with pricing tables, testimonials, and feature comparison",
}


def resolve_template(key) -> TemplateKey:
    """Return the TemplateKey for ``key`` or raise ConfigurationError."""
    if isinstance(key, TemplateKey):
        return key
    try:
        return TemplateKey(key)
    except ValueError:
        allowed = ", ".join(t.value for t in TemplateKey)
        raise ConfigurationError(
            f"Unknown template '{key}'. Expected one of: {allowed}"
        ) from None


def describe_template(key) -> str:
    return LANDING_PAGE_TEMPLATES[resolve_template(key)]
