# app/crud/crud_post.py
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from .base import CRUDBase
from app.core import languages
from app.models.post import Post, PostContent
from app.schemas.content import PostUpsert


def _has_content(lang: str):
    """EXISTS clause: the post has a translation in `lang` or the default."""
    candidates = {lang, languages.default_language()}
    return (
        select(PostContent.id)
        .where(PostContent.post_id == Post.id, PostContent.lang.in_(candidates))
        .exists()
    )


class CRUDPost(CRUDBase[Post, PostUpsert, PostUpsert]):
    def get_by_slug(self, db: Session, *, slug: str) -> Post | None:
        return db.query(self.model).filter(self.model.slug == slug).first()

    def get_published_by_slug(self, db: Session, *, slug: str) -> Post | None:
        return (
            db.query(self.model)
            .options(joinedload(self.model.author))
            .filter(self.model.slug == slug, self.model.published.is_(True))
            .first()
        )

    def get_multi_published(
        self, db: Session, *, lang: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Post], int]:
        """
        Published posts that can be served in `lang`, newest first.
        The total only counts posts that resolve to content so pagination
        stays consistent with the rows returned.
        """
        query = db.query(self.model).filter(
            self.model.published.is_(True), _has_content(lang)
        )
        total = query.count()
        posts = (
            query.order_by(self.model.created_at.desc(), self.model.id)
            .offset(skip)
            .limit(limit)
            .all()
        )
        return posts, total


post = CRUDPost(Post)
