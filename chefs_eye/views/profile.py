"""Profile feed: the user's posts, with AI-suggested captions."""

import uuid
from typing import List, Optional

from chefs_eye.data.seed import SEED_PROFILE
from chefs_eye.gateway.base import AIGateway
from chefs_eye.gateway.images import safe_execute_async
from chefs_eye.models.models import UserPost, UserProfile
from chefs_eye.utils.logger import logger


class ProfileFeed:
    """Posts shown on the profile view, newest first."""

    def __init__(self, gateway: AIGateway, profile: Optional[UserProfile] = None) -> None:
        self.gateway = gateway
        self.profile = (profile or SEED_PROFILE).model_copy(deep=True)

    @property
    def posts(self) -> List[UserPost]:
        return list(self.profile.posts)

    async def magic_caption(self, image: str) -> Optional[str]:
        """Suggest a title for a photo. Returns None if the gateway fails."""
        if not image:
            return None
        return await safe_execute_async(
            self.gateway.caption_post(image),
            "Magic caption",
            log_level="error",
        )

    def post(self, title: str, image: str) -> UserPost:
        """Prepend a new post.

        Raises:
            ValueError: If title or image is empty.
        """
        if not title or not image:
            raise ValueError("A post needs both a title and an image")
        new_post = UserPost(id=uuid.uuid4().hex[:9], image=image, title=title, likes=0, comments=0)
        self.profile.posts.insert(0, new_post)
        logger.info(f"Posted: {title}")
        return new_post
