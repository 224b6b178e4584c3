"""
Domain error taxonomy.

  NotFoundError         — user / post / moment / comment / edge / favorite absent
  ConflictError         — already following, already favorited, slug race lost
  UnauthorizedError     — actor is neither the owner nor an elevated principal
  InvalidArgumentError  — blank keyword, negative threshold, bad paging input

Services raise these; the API layer maps each kind to exactly one HTTP status
(see main.py). Nothing below the routers raises HTTPException.
"""


class DomainError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    kind = "not_found"
    status_code = 404


class ConflictError(DomainError):
    kind = "conflict"
    status_code = 409


class UnauthorizedError(DomainError):
    kind = "unauthorized"
    status_code = 403


class InvalidArgumentError(DomainError):
    kind = "invalid_argument"
    status_code = 400


class UserNotFound(NotFoundError):
    def __init__(self, user_id) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class PostNotFound(NotFoundError):
    def __init__(self, post_id: str) -> None:
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class MomentNotFound(NotFoundError):
    def __init__(self, moment_id: str) -> None:
        super().__init__(f"Moment {moment_id} not found")
        self.moment_id = moment_id


class CommentNotFound(NotFoundError):
    def __init__(self, comment_id: str, parent_id: str) -> None:
        super().__init__(f"Comment {comment_id} not found in {parent_id}")
        self.comment_id = comment_id
        self.parent_id = parent_id


class NotFollowing(NotFoundError):
    def __init__(self, follower_id: int, following_id: int) -> None:
        super().__init__(f"User {follower_id} does not follow user {following_id}")


class NotFavorited(NotFoundError):
    def __init__(self, user_id, post_id) -> None:
        super().__init__(f"User {user_id} has not favorited post {post_id}")


class AlreadyFollowing(ConflictError):
    def __init__(self, follower_id: int, following_id: int) -> None:
        super().__init__(f"User {follower_id} already follows user {following_id}")


class AlreadyFavorited(ConflictError):
    def __init__(self, user_id: int, post_id: str) -> None:
        super().__init__(f"User {user_id} already favorited post {post_id}")


class SlugConflict(ConflictError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Slug '{slug}' is already taken")
        self.slug = slug
