# Services package.
#
# Each module exposes async functions that hold the business rules and
# database access for one resource:
#
#   user_service     registration, login, current-user read/update
#   profile_service  profile lookup, follow / unfollow
#   article_service  listing, feed, CRUD, favorite / unfavorite
#   comment_service  list, add and delete comments on an article
#   tag_service      tag catalogue (cache-aside)
#
# All service functions take an AsyncSession first and flush without
# committing; the ``get_db`` dependency owns the transaction.  Domain
# failures are raised as ``app.errors`` exceptions and projected into
# responses by the handlers installed in ``app.main``.
