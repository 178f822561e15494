# backend/docflow/services/search.py
import time
from typing import Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Document
from ..schemas.document import Document as DocumentSchema, DocumentSearchParams
from ..utils.logging import service_logger
from .ranking import RankingFunction, rank_documents

SORT_OPTIONS: Dict[str, Tuple[str, str]] = {
    "created_at_desc": ("created_at", "desc"),
    "created_at_asc": ("created_at", "asc"),
    "title_asc": ("title", "asc"),
    "title_desc": ("title", "desc"),
    "download_count_desc": ("download_count", "desc"),
    "download_count_asc": ("download_count", "asc"),
}
DEFAULT_SORT = "created_at_desc"


def filter_by_tags(documents: Iterable[Document], tags: Sequence[str]) -> List[Document]:
    """Keep documents sharing at least one tag with ``tags``; order is preserved"""
    documents = list(documents)
    if not tags:
        return documents
    wanted = set(tags)
    return [doc for doc in documents if isinstance(doc.tags, list) and wanted.intersection(doc.tags)]


def serialize(documents: Iterable[Document]) -> List[DocumentSchema]:
    return [DocumentSchema.model_validate(doc) for doc in documents]


class SearchAggregator:
    """Document search: ranked free-text mode or filtered browse mode"""

    def __init__(self, ranking: RankingFunction = rank_documents):
        self.ranking = ranking

    def search(self, db: Session, params: DocumentSearchParams) -> List[DocumentSchema]:
        query = (params.searchQuery or "").strip()
        start_time = time.time()

        if query:
            documents = self._text_search(db, query, params)
            mode = "text"
        else:
            documents = self._browse(db, params)
            mode = "browse"

        service_logger.info("Document search completed", extra={
            "mode": mode,
            "result_count": len(documents),
            "execution_time_ms": round((time.time() - start_time) * 1000, 2)
        })
        return serialize(documents)

    def _text_search(self, db: Session, query: str, params: DocumentSearchParams) -> List[Document]:
        ranked = self.ranking(
            db, query, params.category or None, params.fileType or None, params.limit, params.offset
        )
        if not ranked:
            return []

        ranks = {row["id"]: float(row["rank"] or 0) for row in ranked}
        positions = {row["id"]: index for index, row in enumerate(ranked)}

        # Children are included so version-specific matches can surface
        rows = db.query(Document).filter(Document.id.in_(list(ranks))).all()
        rows.sort(key=lambda doc: (-ranks.get(doc.id, 0.0), positions.get(doc.id, len(positions))))

        return filter_by_tags(rows, params.tags)

    def _browse(self, db: Session, params: DocumentSearchParams) -> List[Document]:
        q = db.query(Document).filter(Document.parent_document_id.is_(None))

        if params.category:
            q = q.filter(Document.category == params.category)
        if params.fileType:
            q = q.filter(Document.file_type == params.fileType)
        if params.featuredOnly:
            q = q.filter(Document.is_featured.is_(True))
        if params.fromDate:
            q = q.filter(func.date(Document.created_at) >= params.fromDate)
        if params.toDate:
            q = q.filter(func.date(Document.created_at) <= params.toDate)

        column_name, direction = SORT_OPTIONS.get(params.sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])
        column = getattr(Document, column_name)
        q = q.order_by(column.desc() if direction == "desc" else column.asc(), Document.id)

        return filter_by_tags(q.all(), params.tags)


search_aggregator = SearchAggregator()
