"""Post and reply endpoints for the ReelTalk API."""

from fastapi import APIRouter, Query, status

from reeltalk.api.v1.dependencies import CurrentUserIdDep, SessionDep
from reeltalk.schemas.post import FeedResponse, PostCreate, PostResponse, PostUpdate
from reeltalk.schemas.reply import (
    ReplyCreate,
    ReplyNodeResponse,
    ReplyResponse,
    ReplyTreeResponse,
)
from reeltalk.services import post_service
from reeltalk.services.feed import FeedFilter, FeedPaginator, FeedSort
from reeltalk.services.reply_tree import ReplyTreeService, flatten_tree

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=FeedResponse)
def list_posts(
    db: SessionDep,
    sort: str = Query(FeedSort.NEWEST.value, description="newest, most_viewed, most_liked or most_replies"),
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
    limit: int | None = Query(None, description="Page size"),
    category_id: int | None = Query(None),
    category: str | None = Query(None, description="Category slug"),
    tag: str | None = Query(None),
    author_id: str | None = Query(None),
    search: str | None = Query(None, description="Case-insensitive title/content search"),
    tmdb_id: int | None = Query(None),
    media_type: str | None = Query(None),
) -> FeedResponse:
    """Return the next page of visible posts.

    Args:
        db: Database session
        sort: Ordering key; ties are broken by ascending post id
        cursor: Opaque position from the previous page, omitted for the first
        limit: Maximum number of posts to return
        category_id: Filter by category id
        category: Filter by category slug
        tag: Filter by tag
        author_id: Filter by author
        search: Filter by text in title or content
        tmdb_id: Filter by discussed catalog title (with ``media_type``)
        media_type: Catalog media type of ``tmdb_id``

    Returns:
        The page items and the cursor for the following page, if any
    """
    feed_filter = FeedFilter(
        category_id=category_id,
        category_slug=category,
        tag=tag,
        author_id=author_id,
        search=search,
        tmdb_id=tmdb_id,
        media_type=media_type,
    )
    page = FeedPaginator(db).next_page(feed_filter, sort, cursor, limit)
    return FeedResponse(
        items=[PostResponse.model_validate(post) for post in page.items],
        next_cursor=page.next_cursor,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> PostResponse:
    """Create a new post for the authenticated caller."""
    post = post_service.create_post(
        db,
        author_id=current_user_id,
        title=post_data.title,
        content=post_data.content,
        tags=post_data.tags,
        category_id=post_data.category_id,
        tmdb_id=post_data.tmdb_id,
        media_type=post_data.media_type,
        status=post_data.status,
        scheduled_at=post_data.scheduled_at,
    )
    return PostResponse.model_validate(post)


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: SessionDep) -> PostResponse:
    """Get a specific post by ID and count the view."""
    post = post_service.get_post(db, post_id, record_view=True)
    return PostResponse.model_validate(post)


@router.patch("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> PostResponse:
    """Edit a post written by the caller; omitted fields keep their values."""
    post = post_service.update_post(
        db,
        post_id,
        editor_id=current_user_id,
        **post_data.model_dump(exclude_unset=True),
    )
    return PostResponse.model_validate(post)


@router.get("/{post_id}/replies", response_model=ReplyTreeResponse)
def get_post_replies(
    post_id: int,
    db: SessionDep,
    max_depth: int | None = Query(None, ge=0, description="Override the nesting cap"),
) -> ReplyTreeResponse:
    """Return the post's replies as a nested thread."""
    forest = ReplyTreeService(db).tree_for_post(post_id, max_depth)
    return ReplyTreeResponse(
        post_id=post_id,
        total=sum(1 for _ in flatten_tree(forest)),
        replies=[ReplyNodeResponse.from_node(node) for node in forest],
    )


@router.post(
    "/{post_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reply(
    post_id: int,
    reply_data: ReplyCreate,
    current_user_id: CurrentUserIdDep,
    db: SessionDep,
) -> ReplyResponse:
    """Reply to a post or to one of its replies."""
    reply = post_service.create_reply(
        db,
        author_id=current_user_id,
        post_id=post_id,
        content=reply_data.content,
        parent_reply_id=reply_data.parent_reply_id,
    )
    return ReplyResponse.model_validate(reply)
