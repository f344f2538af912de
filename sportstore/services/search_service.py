# sportstore/services/search_service.py
"""Keyword search for the storefront header."""
from sqlalchemy import or_

from ..model import Category, Product
from ..utils.parsing import strip_accents

HOT_KEYWORDS = (
    "giày bóng đá", "áo đấu", "quần thể thao", "vợt tennis",
    "bóng rổ", "chạy bộ", "gym", "yoga", "bơi lội",
    "VJUSPORTPRODUCT", "Nike", "Adidas", "Puma",
)
MAX_SUGGESTIONS = 8


def _fold(text):
    return strip_accents(text).lower().strip()


def suggest(keyword, candidates, limit=MAX_SUGGESTIONS):
    """Candidates containing `keyword`, ignoring case and Vietnamese diacritics.

    Order is kept and duplicates (after folding) dropped.
    """
    needle = _fold(keyword)
    if not needle:
        return []
    seen, out = set(), []
    for text in candidates:
        folded = _fold(text)
        if needle in folded and folded not in seen:
            seen.add(folded)
            out.append(text)
            if len(out) >= limit:
                break
    return out


def search(keyword, limit=20):
    keyword = (keyword or "").strip()
    if not keyword:
        return {"products": [], "suggestions": []}
    like = f"%{keyword}%"
    products = (
        Product.query.filter(Product.is_active.is_(True))
        .filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.brand.ilike(like),
            Product.description.ilike(like),
        ))
        .order_by(Product.sold_count.desc(), Product.created_at.desc())
        .limit(limit)
        .all()
    )
    names = [c.name for c in Category.query.filter_by(is_active=True).order_by(Category.sort_order).all()]
    return {
        "products": [p.as_api() for p in products],
        "suggestions": suggest(keyword, [*names, *HOT_KEYWORDS]),
    }
