import re


def slugify(title: str) -> str:
    """Turn a product title into the slug used in storefront checkout URLs.

    "My Great E-Book!" -> "my-great-e-book"
    """
    slug = (title or "").lower()
    slug = re.sub(r"[^a-z0-9 -]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()
