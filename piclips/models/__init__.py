from piclips.models.users import Users, user_follows
from piclips.models.videos import Privacy, Video, video_likes
from piclips.models.comments import Comment
from piclips.models.interactions import Interaction, InteractionType
from piclips.models.tips import Tip

__all__ = [
    "Comment",
    "Interaction",
    "InteractionType",
    "Privacy",
    "Tip",
    "Users",
    "Video",
    "user_follows",
    "video_likes",
]
