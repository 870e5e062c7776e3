import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_slug(title: str) -> str:
    """Derive a URL-safe identifier from a title.

    Lower-cases, collapses every run of non-alphanumeric characters into a
    single hyphen and strips hyphens from both ends. Idempotent.
    """
    return _NON_ALNUM.sub("-", title.lower()).strip("-")
