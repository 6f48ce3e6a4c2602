from src.models.recipe import (  # noqa: F401
    ApiModel,
    Author,
    Category,
    CountBucket,
    Difficulty,
    ImageInfo,
    ImagePayload,
    Ingredient,
    Recipe,
    RecipeCreate,
    RecipeStats,
    RecipeUpdate,
    Unit,
)
from src.models.user import (  # noqa: F401
    ProfileStats,
    ProfileUpdate,
    PublicUser,
    SocialMedia,
    User,
    UserProfile,
)
