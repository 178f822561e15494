# backend/docflow/services/ranking.py
from typing import List, Optional, Protocol, TypedDict

from sqlalchemy import or_, text
from sqlalchemy.orm import Session

from ..models import Document


class RankedDocument(TypedDict):
    id: str
    rank: float


class RankingFunction(Protocol):
    def __call__(
            self,
            db: Session,
            query: str,
            category: Optional[str],
            file_type: Optional[str],
            limit: int,
            offset: int
    ) -> List[RankedDocument]:
        ...


SEARCH_DOCUMENTS_DDL = """
CREATE OR REPLACE FUNCTION search_documents(
  search_query TEXT,
  p_category TEXT DEFAULT NULL,
  p_file_type TEXT DEFAULT NULL,
  p_limit INTEGER DEFAULT 50,
  p_offset INTEGER DEFAULT 0
)
RETURNS TABLE (id VARCHAR, rank REAL) AS $$
BEGIN
  RETURN QUERY
  SELECT
    d.id,
    ts_rank(
      to_tsvector('english',
        COALESCE(d.title, '') || ' ' ||
        COALESCE(d.description, '') || ' ' ||
        COALESCE(d.searchable_content, '')
      ),
      plainto_tsquery('english', search_query)
    ) AS rank
  FROM documents d
  WHERE
    to_tsvector('english',
      COALESCE(d.title, '') || ' ' ||
      COALESCE(d.description, '') || ' ' ||
      COALESCE(d.searchable_content, '')
    ) @@ plainto_tsquery('english', search_query)
    AND (p_category IS NULL OR d.category = p_category)
    AND (p_file_type IS NULL OR d.file_type = p_file_type)
  ORDER BY rank DESC, d.created_at DESC
  LIMIT p_limit
  OFFSET p_offset;
END;
$$ LANGUAGE plpgsql;
"""


def _postgres_ranking(db, query, category, file_type, limit, offset) -> List[RankedDocument]:
    rows = db.execute(
        text("SELECT id, rank FROM search_documents(:query, :category, :file_type, :limit, :offset)"),
        {
            "query": query,
            "category": category,
            "file_type": file_type,
            "limit": limit,
            "offset": offset,
        }
    ).all()
    return [{"id": str(row.id), "rank": float(row.rank)} for row in rows]


def _portable_ranking(db, query, category, file_type, limit, offset) -> List[RankedDocument]:
    terms = [term.lower() for term in query.split() if term.strip()]
    if not terms:
        return []

    columns = (Document.title, Document.description, Document.searchable_content)
    candidates = db.query(
        Document.id, Document.title, Document.description, Document.searchable_content, Document.created_at
    ).filter(or_(*[column.ilike(f"%{term}%") for term in terms for column in columns]))
    if category:
        candidates = candidates.filter(Document.category == category)
    if file_type:
        candidates = candidates.filter(Document.file_type == file_type)

    scored = []
    for row in candidates.all():
        haystack = " ".join(filter(None, (row.title, row.description, row.searchable_content))).lower()
        matched = sum(1 for term in terms if term in haystack)
        if matched:
            scored.append((float(matched), row.created_at, row.id))

    # Newest first among equal ranks, then rank descending (stable sort)
    scored.sort(key=lambda item: item[1].timestamp() if item[1] else 0.0, reverse=True)
    scored.sort(key=lambda item: item[0], reverse=True)
    return [{"id": doc_id, "rank": rank} for rank, _, doc_id in scored[offset:offset + limit]]


def rank_documents(
        db: Session,
        query: str,
        category: Optional[str] = None,
        file_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
) -> List[RankedDocument]:
    """Free-text relevance ranking over title, description and searchable content"""
    if db.get_bind().dialect.name == "postgresql":
        return _postgres_ranking(db, query, category, file_type, limit, offset)
    return _portable_ranking(db, query, category, file_type, limit, offset)
