DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def clamp_page(page, size):
    """Normalize paging input: page >= 1, size in [1, 100] (default 20)."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        size = int(size)
    except (TypeError, ValueError):
        size = DEFAULT_PAGE_SIZE
    if page < 1:
        page = 1
    if size < 1:
        size = DEFAULT_PAGE_SIZE
    if size > MAX_PAGE_SIZE:
        size = MAX_PAGE_SIZE
    return page, size


def page_payload(items, page, size, total):
    return {"items": items, "page": page, "size": size, "total": total}
