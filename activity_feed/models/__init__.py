from activity_feed.models.member import MemberRecord

__all__ = [
    "MemberRecord",
]
