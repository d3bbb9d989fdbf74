# Services package.
#
# Moderation core:
#
#   like_ledger       : one Like/Dislike record per (subject, user)
#   ban_registry      : global, blog-scoped and blog bans
#   visibility        : which blogs/posts/comments a public caller sees
#   likes_aggregator  : viewer-specific like counts and newest likes
#   guard             : ownership and ban checks run before any write
#
# Aggregate services built on top of it:
#
#   blog_service, post_service, comment_service, user_service,
#   testing_service
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
