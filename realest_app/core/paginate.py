class PaginatePage:
    def offset(self, page: int, per_page: int) -> int:
        return (max(page, 1) - 1) * per_page

    def meta(self, page: int, per_page: int, total: int) -> dict:
        total_pages = (total + per_page - 1) // per_page if per_page else 0
        return {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_more": page < total_pages,
        }
