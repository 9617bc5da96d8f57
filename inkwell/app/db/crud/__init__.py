"""CRUD operations package.

- user.py: User lookup, creation, deletion and moderation flags
- article.py: Article lookup, authoring, listing and deletion
- comment.py: Comment creation, listing and counters
- engagement.py: Comment likes, article likes and bookmarks
"""

# User operations
from inkwell.app.db.crud.user import (
    lookup_user_by_token_hash,
    get_user_by_id,
    create_user,
    list_users_with_comment_counts,
    set_user_banned,
    set_user_role,
    is_user_banned,
    delete_user,
)

# Article operations
from inkwell.app.db.crud.article import (
    get_article_by_slug,
    get_published_article_by_slug,
    create_article,
    list_articles,
    update_article,
    count_articles_by_author,
    delete_article,
)

# Comment operations
from inkwell.app.db.crud.comment import (
    count_comments_by_author,
    get_comment_in_article,
    get_visible_comment,
    create_comment,
    list_comments,
    adjust_comment_likes,
)

# Engagement operations
from inkwell.app.db.crud.engagement import (
    get_comment_like,
    create_comment_like,
    delete_comment_like,
    get_article_like,
    adjust_article_likes,
    toggle_article_like,
    get_bookmark,
    create_bookmark,
    delete_bookmarks,
)

__all__ = [
    # User operations
    "lookup_user_by_token_hash",
    "get_user_by_id",
    "create_user",
    "list_users_with_comment_counts",
    "set_user_banned",
    "set_user_role",
    "is_user_banned",
    "delete_user",
    # Article operations
    "get_article_by_slug",
    "get_published_article_by_slug",
    "create_article",
    "list_articles",
    "update_article",
    "count_articles_by_author",
    "delete_article",
    # Comment operations
    "count_comments_by_author",
    "get_comment_in_article",
    "get_visible_comment",
    "create_comment",
    "list_comments",
    "adjust_comment_likes",
    # Engagement operations
    "get_comment_like",
    "create_comment_like",
    "delete_comment_like",
    "get_article_like",
    "adjust_article_likes",
    "toggle_article_like",
    "get_bookmark",
    "create_bookmark",
    "delete_bookmarks",
]
